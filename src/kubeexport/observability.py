"""Logging and tracing for kubeexport.

Every component logs through a StructuredLogger, which prints one ``key=value``
line per event. With ``observability.enabled`` set, the same records and the spans
around listing and discovery are also shipped to an OTLP/HTTP collector.
"""

import logging
import traceback
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

from opentelemetry import trace
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.http._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from kubeexport.config import ObservabilityConfig

logger = logging.getLogger(__name__)


class StructuredLogger:
    """Console logger emitting ``timestamp=... [resource_type=...] msg=... k=v`` lines.

    ``resource_type`` is hoisted in front of the message so lines about the same
    type line up; other context fields follow in the order given.
    """

    def __init__(
        self,
        name: str,
        config: ObservabilityConfig,
        otlp_handler: logging.Handler | None = None,
    ) -> None:
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, config.log_level))
        self.config = config

        if not self.logger.handlers:
            self.logger.addHandler(logging.StreamHandler())
        if otlp_handler and otlp_handler not in self.logger.handlers:
            self.logger.addHandler(otlp_handler)

    def _format_message(self, message: str, **context: Any) -> str:
        parts = [f"timestamp={datetime.now(UTC).isoformat()}"]
        if "resource_type" in context:
            parts.append(f"resource_type={context.pop('resource_type')}")
        parts.append(f"msg={message}")
        parts.extend(f"{key}={value}" for key, value in context.items())
        return " ".join(parts)

    def debug(self, message: str, **context: Any) -> None:
        self.logger.debug(self._format_message(message, **context))

    def info(self, message: str, **context: Any) -> None:
        self.logger.info(self._format_message(message, **context))

    def warning(self, message: str, **context: Any) -> None:
        self.logger.warning(self._format_message(message, **context))

    def error(self, message: str, error: Exception | None = None, **context: Any) -> None:
        """Log an error; with ``error`` given, its type, message and traceback are added."""
        if error:
            context["error_type"] = type(error).__name__
            context["error_message"] = str(error)
            context["stack_trace"] = "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            )
        self.logger.error(self._format_message(message, **context))


class ObservabilityManager:
    """Owns the OpenTelemetry providers for one process and hands out loggers."""

    def __init__(self, config: ObservabilityConfig) -> None:
        self.config = config
        self._tracer_provider: TracerProvider | None = None
        self._logger_provider: LoggerProvider | None = None
        self._otlp_handler: LoggingHandler | None = None
        self._initialized = False

    def initialize(self) -> None:
        """Start shipping spans and log records to the configured collector.

        Does nothing when export is disabled. Traces go to ``<endpoint>/v1/traces``
        and logs to ``<endpoint>/v1/logs``.
        """
        if not self.config.enabled:
            logger.debug("Observability export is disabled")
            return
        if self._initialized:
            logger.warning("Observability already initialized")
            return

        resource = Resource.create(
            {
                "service.name": self.config.service_name,
                "deployment.environment": self.config.environment,
            }
        )
        endpoint = self.config.otlp_endpoint.rstrip("/")
        headers = dict(self.config.otlp_headers)

        span_exporter = OTLPSpanExporter(endpoint=f"{endpoint}/v1/traces", headers=headers)
        self._tracer_provider = TracerProvider(resource=resource)
        self._tracer_provider.add_span_processor(BatchSpanProcessor(span_exporter))
        trace.set_tracer_provider(self._tracer_provider)

        log_exporter = OTLPLogExporter(endpoint=f"{endpoint}/v1/logs", headers=headers)
        self._logger_provider = LoggerProvider(resource=resource)
        self._logger_provider.add_log_record_processor(BatchLogRecordProcessor(log_exporter))
        set_logger_provider(self._logger_provider)
        self._otlp_handler = LoggingHandler(
            level=getattr(logging, self.config.log_level),
            logger_provider=self._logger_provider,
        )

        self._initialized = True
        logger.info(
            f"Observability initialized: service={self.config.service_name}, "
            f"environment={self.config.environment}, endpoint={endpoint}"
        )

    def shutdown(self) -> None:
        """Flush pending spans and log records. Safe to call more than once."""
        if self._tracer_provider:
            self._tracer_provider.shutdown()  # type: ignore[no-untyped-call]
            self._tracer_provider = None
        if self._logger_provider:
            self._logger_provider.shutdown()  # type: ignore[no-untyped-call]
            self._logger_provider = None
        self._otlp_handler = None
        self._initialized = False

    def set_log_level(self, level: str) -> None:
        """Change the level of loggers handed out from now on."""
        self.config = self.config.model_copy(update={"log_level": level.upper()})
        if self._otlp_handler:
            self._otlp_handler.setLevel(getattr(logging, self.config.log_level))

    def get_logger(self, name: str) -> StructuredLogger:
        return StructuredLogger(name, self.config, self._otlp_handler)

    @contextmanager
    def trace_operation(self, operation_name: str, **attributes: Any) -> Any:
        """Run the enclosed block inside a span named ``operation_name``.

        Attributes are stringified onto the span; an exception escaping the block
        marks the span as failed and is re-raised. Yields None when tracing is off.
        """
        if not self._initialized:
            yield None
            return

        with trace.get_tracer(__name__).start_as_current_span(operation_name) as span:
            for key, value in attributes.items():
                span.set_attribute(key, str(value))
            try:
                yield span
            except Exception as e:
                span.set_attribute("error", True)
                span.set_attribute("error.type", type(e).__name__)
                span.set_attribute("error.message", str(e))
                raise


_observability_manager: ObservabilityManager | None = None


def get_observability_manager(
    config: ObservabilityConfig | None = None,
) -> ObservabilityManager:
    """Return the process-wide manager, creating and initializing it on first use.

    ``config`` only takes effect on that first call; it defaults to the
    ``observability`` section of the packaged defaults.
    """
    global _observability_manager

    if _observability_manager is None:
        if config is None:
            from kubeexport.config import default_config

            config = default_config.observability

        _observability_manager = ObservabilityManager(config)
        _observability_manager.initialize()

    return _observability_manager


__all__ = [
    "ObservabilityManager",
    "StructuredLogger",
    "get_observability_manager",
]
