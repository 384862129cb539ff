"""Tracing decorator for gateway operations.

Spans carry the SHA-256 of the key or prefix, never the raw value, since
owner prefixes and resource names may identify customers.
"""

from __future__ import annotations

import functools
import hashlib
import logging
from collections.abc import Callable
from typing import Any, TypeVar, cast

from resource_storage.observability.tracing import is_tracing_enabled

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

SPAN_PREFIX = "resource_storage.gateway"


def _key_digest(key: str) -> str:
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def traced_gateway_operation(operation: str) -> Callable[[F], F]:
    """Decorator to trace gateway operations with OpenTelemetry.

    The wrapped method must take the key (or prefix) as its first positional
    argument after ``self``.

    Args:
        operation: Operation name (e.g., "put", "get", "list_page").

    Returns:
        Decorated function that emits spans when tracing is enabled.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self: Any, key: str, *args: Any, **kwargs: Any) -> Any:
            if not is_tracing_enabled():
                return func(self, key, *args, **kwargs)

            try:
                from opentelemetry import trace
            except ImportError:
                return func(self, key, *args, **kwargs)

            tracer = trace.get_tracer("resource_storage.gateway")
            with tracer.start_as_current_span(f"{SPAN_PREFIX}.{operation}") as span:
                span.set_attribute("resource_storage.key_sha256", _key_digest(key))
                span.set_attribute("storage.backend", getattr(self, "backend_name", "unknown"))

                try:
                    result = func(self, key, *args, **kwargs)
                except Exception as e:
                    span.set_attribute("error", True)
                    span.set_attribute("error.type", type(e).__name__)
                    raise

                _add_result_attributes(span, result, operation)
                return result

        return cast(F, wrapper)

    return decorator


def _add_result_attributes(span: Any, result: Any, operation: str) -> None:
    """Add size and count attributes for known result types."""
    try:
        from resource_storage.models import ListPage, ResourceContent

        if isinstance(result, ListPage):
            span.set_attribute("resource_storage.page_size", len(result.summaries))
            span.set_attribute("resource_storage.has_next_page", result.next_token is not None)
        elif isinstance(result, ResourceContent):
            if result.size_bytes is not None:
                span.set_attribute("resource_storage.object_size_bytes", result.size_bytes)
            if result.content_type:
                span.set_attribute("resource_storage.content_type", result.content_type)
        elif operation == "exists" and isinstance(result, bool):
            span.set_attribute("resource_storage.exists", result)
    except Exception as e:
        logger.debug("Failed to add result attributes to span: %s", e)
