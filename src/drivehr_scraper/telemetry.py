import logging
from typing import Any

logger = logging.getLogger(__name__)

MetricValue = str | int | float | bool


class FetchTelemetry:
    """
    Telemetry hooks used by the fetch orchestrator.

    The base class records nothing and only forwards span attributes to spans
    that support them, so it is safe to use when no tracing is configured.
    """

    def record_metrics(
        self,
        operation_id: str,
        operation: str,
        status: str,
        duration_ms: float,
        attributes: dict[str, MetricValue],
    ) -> None:
        pass

    def set_span_attributes(self, span: Any, attributes: dict[str, MetricValue]) -> None:
        set_attributes = getattr(span, "set_attributes", None)
        if callable(set_attributes):
            set_attributes(attributes)


class LoggingTelemetry(FetchTelemetry):
    """Writes fetch metrics to the log instead of a metrics backend."""

    def record_metrics(
        self,
        operation_id: str,
        operation: str,
        status: str,
        duration_ms: float,
        attributes: dict[str, MetricValue],
    ) -> None:
        details = ", ".join(f"{key}={value}" for key, value in attributes.items())
        logger.info(
            f"[{operation_id}] {operation} {status} in {duration_ms:.0f}ms ({details})"
        )
