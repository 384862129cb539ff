"""Resource storage observability.

OpenTelemetry tracing, opt-in via RESOURCE_STORAGE_OTEL_ENABLED.
"""

from resource_storage.observability.tracing import configure_tracing, is_tracing_enabled

__all__ = ["configure_tracing", "is_tracing_enabled"]
