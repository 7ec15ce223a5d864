import asyncio
import logging
import random
from abc import ABC, abstractmethod

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
INITIAL_BACKOFF = 1.0  # seconds
MAX_BACKOFF = 10.0  # seconds
JITTER_RATIO = 0.1
HTTP_TIMEOUT = 30.0  # seconds
USER_AGENT = "DriveHR-Scraper/2.0 (+https://drivehris.app)"


class TransportResponse(BaseModel):
    """Result of a GET request. Transport failures are reported, not raised."""

    success: bool
    status: int
    data: str = ""
    error: str | None = None


class BaseTransport(ABC):
    """
    Abstract base class for the HTTP collaborator used by non-browser strategies.
    """

    @abstractmethod
    async def get(self, url: str, headers: dict[str, str] | None = None) -> TransportResponse:
        pass


class HttpTransport(BaseTransport):
    """
    httpx-based transport. Network errors and 5xx responses are retried with
    exponential backoff and jitter; other responses are returned as-is.
    """

    def __init__(
        self,
        timeout: float = HTTP_TIMEOUT,
        user_agent: str = USER_AGENT,
        max_retries: int = MAX_RETRIES,
        initial_backoff: float = INITIAL_BACKOFF,
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self.max_retries = max_retries
        self.initial_backoff = initial_backoff

    async def get(self, url: str, headers: dict[str, str] | None = None) -> TransportResponse:
        last_error = ""

        for attempt in range(1, self.max_retries + 1):
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout,
                    headers={"User-Agent": self.user_agent},
                    follow_redirects=True,
                ) as client:
                    response = await client.get(url, headers=headers)
            except httpx.HTTPError as e:
                last_error = str(e) or type(e).__name__
            else:
                if response.status_code < 500:
                    return TransportResponse(
                        success=response.is_success,
                        status=response.status_code,
                        data=response.text,
                    )
                last_error = f"HTTP {response.status_code} for {url}"

            if attempt == self.max_retries:
                logger.error(f"GET {url} failed after {self.max_retries} attempts: {last_error}")
                break

            backoff = self._backoff(attempt)
            logger.warning(
                f"GET attempt {attempt}/{self.max_retries} failed for {url}: {last_error}. "
                f"Retrying in {backoff:.2f}s..."
            )
            await asyncio.sleep(backoff)

        return TransportResponse(success=False, status=0, error=last_error)

    def _backoff(self, attempt: int) -> float:
        delay = min(self.initial_backoff * (2 ** (attempt - 1)), MAX_BACKOFF)
        jitter = delay * JITTER_RATIO
        return max(0.0, delay + random.uniform(-jitter, jitter))
