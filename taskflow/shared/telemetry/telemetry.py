"""OpenTelemetry tracing for the engine process.

One TelemetryConfig per process, installed by the runtime lifespan when
TELEMETRY_ENABLED is set. Exporters: console, otlp (gRPC) or none.
"""

import logging
import threading

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

EXPORTERS = ("console", "otlp", "none")


def span_processor_for(exporter_type: str, otlp_endpoint: str | None) -> SpanProcessor | None:
    """Batch processor for the named exporter; None for "none".

    "otlp" without an endpoint and unknown names fall back to console.
    """
    if exporter_type == "none":
        return None
    if exporter_type == "otlp" and otlp_endpoint:
        insecure = otlp_endpoint.startswith("http://")
        return BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=insecure))
    if exporter_type not in EXPORTERS or exporter_type == "otlp":
        logger.warning(
            "Span exporter %r unusable (endpoint=%s); exporting to console",
            exporter_type,
            otlp_endpoint,
        )
    return BatchSpanProcessor(ConsoleSpanExporter())


class TelemetryConfig:
    """Owns the tracer provider and the instrumentations hung off it."""

    def __init__(
        self,
        service_name: str,
        service_version: str,
        enabled: bool = True,
        environment: str = "development",
    ) -> None:
        self.service_name = service_name
        self.service_version = service_version
        self.enabled = enabled
        self.environment = environment
        self.tracer_provider: TracerProvider | None = None

    @property
    def active(self) -> bool:
        return self.enabled and self.tracer_provider is not None

    def setup_telemetry(
        self,
        exporter_type: str = "console",
        otlp_endpoint: str | None = None,
        sample_rate: float = 1.0,
    ) -> TracerProvider | None:
        """Build the tracer provider and make it the global one.

        Returns the provider, or None when telemetry is disabled or could
        not be set up. A setup failure never stops the engine.
        """
        if not self.enabled:
            logger.info("Tracing off for %s", self.service_name)
            return None
        resource = Resource(
            attributes={
                SERVICE_NAME: self.service_name,
                SERVICE_VERSION: self.service_version,
                "deployment.environment": self.environment,
            }
        )
        try:
            provider = TracerProvider(resource=resource, sampler=TraceIdRatioBased(sample_rate))
            processor = span_processor_for(exporter_type, otlp_endpoint)
            if processor is not None:
                provider.add_span_processor(processor)
            trace.set_tracer_provider(provider)
        except Exception:
            logger.exception("Tracing setup failed; continuing without spans")
            return None
        self.tracer_provider = provider
        logger.info(
            "Tracing on for %s %s (%s, exporter=%s, sample_rate=%s)",
            self.service_name,
            self.service_version,
            self.environment,
            exporter_type,
            sample_rate,
        )
        return provider

    def _instrument(self, name: str, instrumentor, **kwargs) -> None:
        if not self.active:
            return
        try:
            instrumentor.instrument(tracer_provider=self.tracer_provider, **kwargs)
        except Exception:
            logger.exception("%s instrumentation failed", name)
            return
        logger.info("%s instrumentation on", name)

    def instrument_sqlalchemy(self, engine: AsyncEngine) -> None:
        """Trace statements issued through the engine's sync core."""
        self._instrument("SQLAlchemy", SQLAlchemyInstrumentor(), engine=engine.sync_engine)

    def instrument_logging(self) -> None:
        """Add trace and span ids to log records."""
        self._instrument("Logging", LoggingInstrumentor(), set_logging_format=True)

    def shutdown(self) -> None:
        """Flush pending spans; safe to call when setup never ran."""
        if self.tracer_provider is None:
            return
        try:
            self.tracer_provider.shutdown()
        except Exception:
            logger.exception("Tracer provider shutdown failed")
            return
        logger.info("Tracing flushed and stopped")


_current: TelemetryConfig | None = None
_current_lock = threading.Lock()


def get_telemetry() -> TelemetryConfig | None:
    """The process-wide telemetry instance, if the lifespan installed one."""
    with _current_lock:
        return _current


def set_telemetry(telemetry: TelemetryConfig | None) -> None:
    global _current
    with _current_lock:
        _current = telemetry
