"""OpenTelemetry tracing setup for resource storage.

Tracing is off unless RESOURCE_STORAGE_OTEL_ENABLED is set. Gateways check
``is_tracing_enabled()`` on every call, so spans start and stop with the
variable; ``configure_tracing()`` only installs the provider and exporter.

Environment Variables:
    RESOURCE_STORAGE_OTEL_ENABLED: "1" to emit spans (default: off)
    RESOURCE_STORAGE_OTEL_REQUIRED: "1" to raise if setup fails
    RESOURCE_STORAGE_OTEL_SERVICE_NAME: service.name resource (default: "resource-storage")
    RESOURCE_STORAGE_OTEL_EXPORTER: "otlp-grpc", "otlp-http" or "console"
        (default: "otlp-grpc")
    RESOURCE_STORAGE_OTEL_ENDPOINT: collector endpoint for OTLP (optional)
    RESOURCE_STORAGE_OTEL_TEST_CAPTURE: "1" to keep spans in memory for tests
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from resource_storage.config import env_lookup

if TYPE_CHECKING:
    from opentelemetry.sdk.trace import ReadableSpan

logger = logging.getLogger(__name__)

OTEL_ENABLED_ENV = "RESOURCE_STORAGE_OTEL_ENABLED"
OTEL_REQUIRED_ENV = "RESOURCE_STORAGE_OTEL_REQUIRED"
OTEL_SERVICE_NAME_ENV = "RESOURCE_STORAGE_OTEL_SERVICE_NAME"
OTEL_EXPORTER_ENV = "RESOURCE_STORAGE_OTEL_EXPORTER"
OTEL_ENDPOINT_ENV = "RESOURCE_STORAGE_OTEL_ENDPOINT"
OTEL_TEST_CAPTURE_ENV = "RESOURCE_STORAGE_OTEL_TEST_CAPTURE"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})

# Set once per process; OpenTelemetry refuses to replace a global provider
_provider: Any = None
_memory_exporter: Any = None


class TracingConfigError(Exception):
    """Raised when tracing is required but cannot be set up."""


def _flag(key: str) -> bool:
    return env_lookup(key, "").lower() in _TRUE_VALUES


def is_tracing_enabled() -> bool:
    """Return True when gateway operations should emit spans."""
    return _flag(OTEL_ENABLED_ENV)


@dataclass(frozen=True)
class TracingSettings:
    service_name: str
    exporter: str
    endpoint: str | None
    test_capture: bool
    required: bool

    @classmethod
    def from_env(cls) -> TracingSettings:
        return cls(
            service_name=env_lookup(OTEL_SERVICE_NAME_ENV, "resource-storage")
            or "resource-storage",
            exporter=env_lookup(OTEL_EXPORTER_ENV, "otlp-grpc").lower() or "otlp-grpc",
            endpoint=env_lookup(OTEL_ENDPOINT_ENV, "") or None,
            test_capture=_flag(OTEL_TEST_CAPTURE_ENV),
            required=_flag(OTEL_REQUIRED_ENV),
        )


def _span_processor(settings: TracingSettings) -> Any:
    """Build the span processor for the configured exporter."""
    from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor

    global _memory_exporter

    if settings.test_capture:
        from opentelemetry.sdk.trace.export.in_memory_span_exporter import (
            InMemorySpanExporter,
        )

        _memory_exporter = InMemorySpanExporter()
        return SimpleSpanProcessor(_memory_exporter)

    if settings.exporter == "console":
        from opentelemetry.sdk.trace.export import ConsoleSpanExporter

        return SimpleSpanProcessor(ConsoleSpanExporter())

    kwargs = {"endpoint": settings.endpoint} if settings.endpoint else {}
    if settings.exporter == "otlp-http":
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
    elif settings.exporter == "otlp-grpc":
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
            OTLPSpanExporter,  # type: ignore[no-redef]
        )
    else:
        raise TracingConfigError(f"Unknown tracing exporter: {settings.exporter!r}")
    return BatchSpanProcessor(OTLPSpanExporter(**kwargs))


def configure_tracing() -> bool:
    """Install the tracer provider when tracing is enabled.

    Safe to call repeatedly; the provider is installed once per process.

    Returns:
        True if spans will be exported, False if tracing is off or setup failed.

    Raises:
        TracingConfigError: If setup fails and RESOURCE_STORAGE_OTEL_REQUIRED is set.
    """
    global _provider

    if not is_tracing_enabled():
        logger.debug("Tracing disabled (%s not set)", OTEL_ENABLED_ENV)
        return False
    if _provider is not None:
        return True

    settings = TracingSettings.from_env()
    try:
        from opentelemetry import trace
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider

        provider = TracerProvider(resource=Resource.create({"service.name": settings.service_name}))
        provider.add_span_processor(_span_processor(settings))
        trace.set_tracer_provider(provider)
    except Exception as e:
        logger.error("Failed to configure tracing: %s", e)
        if settings.required:
            raise TracingConfigError(f"Tracing required but setup failed: {e}") from e
        return False

    _provider = provider
    logger.info(
        "Tracing configured: service=%s exporter=%s",
        settings.service_name,
        "in-memory" if settings.test_capture else settings.exporter,
    )
    return True


def get_test_spans() -> list[ReadableSpan]:
    """Return spans captured in memory (RESOURCE_STORAGE_OTEL_TEST_CAPTURE=1)."""
    if _memory_exporter is None:
        return []
    return list(_memory_exporter.get_finished_spans())


def clear_test_spans() -> None:
    if _memory_exporter is not None:
        _memory_exporter.clear()


def reset_tracing() -> None:
    """Drop captured spans between tests.

    The provider itself stays installed for the rest of the process.
    """
    clear_test_spans()
