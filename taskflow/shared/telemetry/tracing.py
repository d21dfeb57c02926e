"""Tracing helpers: @traced spans around engine operations and span annotations."""

import inspect
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from functools import wraps
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

_tracer = trace.get_tracer("taskflow")

# Identifier-like kwargs recorded on spans. Raw task input never is.
SPAN_KWARGS = frozenset(
    {
        "task_id",
        "parent_id",
        "project_id",
        "user_id",
        "series_id",
        "status",
        "archived",
        "page",
        "limit",
        "count",
        "today",
    }
)


@contextmanager
def _operation_span(name: str, static: dict | None, kwargs: dict) -> Iterator[None]:
    with _tracer.start_as_current_span(name) as span:
        for key, value in (static or {}).items():
            span.set_attribute(key, value)
        for key, value in kwargs.items():
            if key in SPAN_KWARGS and value is not None:
                span.set_attribute(f"taskflow.{key}", str(value))
        try:
            yield
        except Exception as exc:
            span.record_exception(exc)
            span.set_status(Status(StatusCode.ERROR, type(exc).__name__))
            raise
        span.set_status(Status(StatusCode.OK))


def traced(name: str | None = None, attributes: dict | None = None) -> Callable:
    """Run the decorated function (sync or async) inside a span.

    The span is named after `name`, or module.function when omitted.
    Keyword arguments listed in SPAN_KWARGS become span attributes.
    """

    def decorator(func: Callable) -> Callable:
        span_name = name or f"{func.__module__}.{func.__qualname__}"

        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def run_async(*args: Any, **kwargs: Any) -> Any:
                with _operation_span(span_name, attributes, kwargs):
                    return await func(*args, **kwargs)

            return run_async

        @wraps(func)
        def run(*args: Any, **kwargs: Any) -> Any:
            with _operation_span(span_name, attributes, kwargs):
                return func(*args, **kwargs)

        return run

    return decorator


def add_span_attributes(**attributes: str | int | float | bool) -> None:
    """Set attributes on the active span, if it is recording."""
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attributes(attributes)


def add_span_event(name: str, attributes: dict | None = None) -> None:
    span = trace.get_current_span()
    if span.is_recording():
        span.add_event(name, attributes=attributes or {})
