import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from drivehr_scraper.models import CareersConfig, FetchResult
from drivehr_scraper.normalizer import JobNormalizer, utc_now_iso
from drivehr_scraper.scrapers.base import FetchStrategy
from drivehr_scraper.scrapers.html_scraper import HtmlFetchStrategy
from drivehr_scraper.scrapers.playwright_scraper import BrowserFetchStrategy
from drivehr_scraper.telemetry import FetchTelemetry, MetricValue
from drivehr_scraper.transport import BaseTransport, HttpTransport

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "drivehr"


@dataclass(frozen=True)
class FetchOperationContext:
    """Per-invocation bookkeeping shared by the success and failure paths."""

    start_time: float
    fetched_at: str
    operation_id: str
    source: str
    company_id: str

    def elapsed_ms(self) -> float:
        return (time.monotonic() - self.start_time) * 1000


def default_strategies() -> list[FetchStrategy]:
    return [BrowserFetchStrategy(), HtmlFetchStrategy()]


class JobFetchService:
    """
    Tries each acquisition strategy in order until one returns.

    Strategies that can't handle the config are skipped. The first strategy
    that returns (even with zero jobs) wins; a strategy that raises is logged
    and the next one is tried. If none succeed, a failed FetchResult is
    returned instead of raising.
    """

    def __init__(
        self,
        strategies: Sequence[FetchStrategy] | None = None,
        transport: BaseTransport | None = None,
        normalizer: JobNormalizer | None = None,
        telemetry: FetchTelemetry | None = None,
    ) -> None:
        self.strategies = list(strategies) if strategies is not None else default_strategies()
        self.transport = transport or HttpTransport()
        self.normalizer = normalizer or JobNormalizer()
        self.telemetry = telemetry or FetchTelemetry()

    async def fetch_jobs(
        self,
        config: CareersConfig,
        source: str = DEFAULT_SOURCE,
        span: Any = None,
    ) -> FetchResult:
        context = self._prepare_context(config, source)
        self._set_span_attributes(
            span,
            {
                "job.source": source,
                "job.company_id": context.company_id,
                "job.strategies_count": len(self.strategies),
            },
        )

        attempted = 0
        for strategy in self.strategies:
            if not strategy.can_handle(config):
                logger.debug(f"Strategy {strategy.name} cannot handle this config, skipping")
                continue

            attempted += 1
            try:
                result = await self._attempt_strategy(strategy, config, context, span)
            except Exception as e:
                self._handle_strategy_error(strategy, e, span)
                continue
            return self._handle_success(result, strategy, context, span)

        return self._handle_all_strategies_failed(context, attempted, span)

    def _prepare_context(self, config: CareersConfig, source: str) -> FetchOperationContext:
        company_id = config.company_id or "unknown"
        return FetchOperationContext(
            start_time=time.monotonic(),
            fetched_at=utc_now_iso(),
            operation_id=f"fetch-{company_id}-{int(time.time() * 1000)}",
            source=source,
            company_id=company_id,
        )

    async def _attempt_strategy(
        self,
        strategy: FetchStrategy,
        config: CareersConfig,
        context: FetchOperationContext,
        span: Any,
    ) -> FetchResult:
        logger.info(f"Attempting to fetch jobs using strategy: {strategy.name}")
        self._set_span_attributes(span, {"job.strategy": strategy.name, "job.strategy_attempt": True})

        raw_jobs = await strategy.fetch_jobs(config, self.transport)
        jobs = self.normalizer.normalize_jobs(
            raw_jobs, context.source, base_url=config.build_careers_url()
        )
        logger.info(f"Successfully fetched {len(jobs)} jobs using {strategy.name}")

        return FetchResult(
            jobs=jobs,
            method=strategy.name,
            success=True,
            message=f"Successfully fetched {len(jobs)} jobs",
            fetched_at=context.fetched_at,
            total_count=len(jobs),
        )

    def _handle_success(
        self,
        result: FetchResult,
        strategy: FetchStrategy,
        context: FetchOperationContext,
        span: Any,
    ) -> FetchResult:
        duration = context.elapsed_ms()
        self._record_metrics(
            context,
            "success",
            duration,
            {
                "source": context.source,
                "strategy": strategy.name,
                "jobCount": result.total_count,
                "companyId": context.company_id,
            },
        )
        self._set_span_attributes(
            span,
            {
                "job.count": result.total_count,
                "job.strategy_used": strategy.name,
                "job.duration_ms": duration,
            },
        )
        return result

    def _handle_strategy_error(self, strategy: FetchStrategy, error: Exception, span: Any) -> None:
        message = str(error) or type(error).__name__
        logger.warning(f"Strategy {strategy.name} failed: {message}")
        self._set_span_attributes(
            span,
            {
                f"job.strategy_{strategy.name}_failed": True,
                f"job.strategy_{strategy.name}_error": message,
            },
        )

    def _handle_all_strategies_failed(
        self,
        context: FetchOperationContext,
        strategies_attempted: int,
        span: Any,
    ) -> FetchResult:
        duration = context.elapsed_ms()
        logger.error(f"All fetch strategies failed ({strategies_attempted} attempted)")
        self._record_metrics(
            context,
            "error",
            duration,
            {
                "source": context.source,
                "error": "all_strategies_failed",
                "strategiesAttempted": strategies_attempted,
                "companyId": context.company_id,
            },
        )
        self._set_span_attributes(
            span,
            {
                "job.all_strategies_failed": True,
                "job.strategies_attempted": strategies_attempted,
                "job.duration_ms": duration,
            },
        )
        return FetchResult(
            jobs=[],
            method="none",
            success=False,
            error="All fetch strategies failed",
            message=f"{strategies_attempted} strategies attempted",
            fetched_at=context.fetched_at,
            total_count=0,
        )

    # Telemetry must never change the outcome of a fetch.
    def _record_metrics(
        self,
        context: FetchOperationContext,
        status: str,
        duration_ms: float,
        attributes: dict[str, MetricValue],
    ) -> None:
        try:
            self.telemetry.record_metrics(
                context.operation_id, "fetch", status, duration_ms, attributes
            )
        except Exception as e:
            logger.debug(f"Telemetry record_metrics failed: {e}")

    def _set_span_attributes(self, span: Any, attributes: dict[str, MetricValue]) -> None:
        try:
            self.telemetry.set_span_attributes(span, attributes)
        except Exception as e:
            logger.debug(f"Telemetry set_span_attributes failed: {e}")
