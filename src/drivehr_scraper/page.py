import logging
from abc import ABC, abstractmethod
from typing import Any

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from drivehr_scraper.errors import PageUnavailableError

logger = logging.getLogger(__name__)

INNER_TEXT_SCRIPT = "() => (document.body ? document.body.innerText : '')"
NON_VISIBLE_TAGS = ("script", "style", "noscript", "template")


class PageContext(ABC):
    """
    Narrow view of a loaded careers page that extractors work against.

    Everything an extractor needs from the page goes through these methods,
    so extraction logic can run against a live browser page or a plain HTML
    string alike.
    """

    base_url: str

    @abstractmethod
    async def content(self) -> str:
        """Return the page's current HTML."""

    @abstractmethod
    async def text_content(self) -> str:
        """Return the visible text of the page body."""

    @abstractmethod
    async def has_visible_text(self, phrase: str) -> bool:
        """Check whether the phrase is visible on the page (case-insensitive)."""


class PlaywrightPageContext(PageContext):
    """PageContext backed by a live Playwright page."""

    def __init__(self, page: Page, base_url: str) -> None:
        self.page = page
        self.base_url = page.url or base_url

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        """Run a script in the page and return its JSON-serializable result."""
        try:
            return await self.page.evaluate(script, arg)
        except PlaywrightError as e:
            raise PageUnavailableError(str(e)) from e

    async def content(self) -> str:
        try:
            return await self.page.content()
        except PlaywrightError as e:
            raise PageUnavailableError(str(e)) from e

    async def text_content(self) -> str:
        text = await self.evaluate(INNER_TEXT_SCRIPT)
        return text if isinstance(text, str) else ""

    async def has_visible_text(self, phrase: str) -> bool:
        try:
            return await self.page.get_by_text(phrase).first.is_visible()
        except PlaywrightError as e:
            logger.debug(f"Visibility check for '{phrase}' failed: {e}")
            return False


class StaticPageContext(PageContext):
    """PageContext backed by an HTML document fetched without a browser."""

    def __init__(self, html: str, base_url: str) -> None:
        self.html = html
        self.base_url = base_url
        self._text: str | None = None

    async def content(self) -> str:
        return self.html

    async def text_content(self) -> str:
        if self._text is None:
            soup = BeautifulSoup(self.html, "html.parser")
            for tag in soup.find_all(NON_VISIBLE_TAGS):
                tag.decompose()
            root = soup.body or soup
            self._text = root.get_text("\n")
        return self._text

    async def has_visible_text(self, phrase: str) -> bool:
        text = await self.text_content()
        return phrase.lower() in " ".join(text.split()).lower()
