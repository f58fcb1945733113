"""Tracing decorators and span-kind helpers."""

from __future__ import annotations

import inspect
from contextlib import contextmanager
from enum import Enum
from functools import wraps
from typing import Any, Callable, Iterator

from openinference.semconv.trace import SpanAttributes
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from omnicontext.tracing.runtime import _get_tracer, capture_session_keys

SESSION_KEY_ATTRIBUTE = "omnicontext.session_key"


class CustomSpanKinds(Enum):
    INIT = "INIT"
    DATABASE = "DATABASE"
    CACHE = "CACHE"
    FILE = "FILE"
    MEMORY = "MEMORY"
    TRUNCATION = "TRUNCATION"


def _span_name(func: Callable, args: tuple) -> str:
    if not args:
        return func.__name__
    owner = args[0] if isinstance(args[0], type) else type(args[0])
    return f"{owner.__name__}.{func.__name__}"


def _session_key(args: tuple) -> str | None:
    """Key of the first identity-like positional argument after ``self``."""
    for arg in args[1:]:
        get_key = getattr(arg, "get_key", None)
        if callable(get_key):
            return get_key()
    return None


@contextmanager
def _operation_span(
    func: Callable,
    args: tuple,
    kwargs: dict,
    *,
    kind: Any,
    open_inference_kind: Any,
    category: str | None,
    capture_input: bool,
) -> Iterator[trace.Span]:
    tracer = _get_tracer(__name__)
    span_kwargs: dict[str, Any] = {"name": _span_name(func, args)}
    if kind:
        span_kwargs["kind"] = kind

    with tracer.start_as_current_span(**span_kwargs, record_exception=False, set_status_on_exception=False) as span:
        if category:
            span.set_attribute("span.category", category)
        if capture_input:
            span.set_attribute("input.args", str(args))
            span.set_attribute("input.kwargs", str(kwargs))
        if open_inference_kind:
            span.set_attribute(
                SpanAttributes.OPENINFERENCE_SPAN_KIND,
                getattr(open_inference_kind, "value", open_inference_kind),
            )
        session_key = _session_key(args) if capture_session_keys() else None
        if session_key:
            span.set_attribute(SESSION_KEY_ATTRIBUTE, session_key)

        try:
            yield span
        except Exception as exc:
            span.set_status(Status(StatusCode.ERROR, str(exc) or type(exc).__name__))
            span.record_exception(exc)
            raise
        span.set_status(Status(StatusCode.OK))


def trace_operation(
    kind: Any = None,
    open_inference_kind: Any = None,
    category: str | None = None,
    capture_input: bool = False,
    capture_output: bool = False,
):
    """Decorator for tracing storage, driver and truncation operations.

    Works on both coroutine functions and plain functions. When one of the
    positional arguments exposes ``get_key()`` (a session identity), its key is
    recorded on the span.
    """
    span_options = {
        "kind": kind,
        "open_inference_kind": open_inference_kind,
        "category": category,
        "capture_input": capture_input,
    }

    def decorator(func: Callable):
        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                with _operation_span(func, args, kwargs, **span_options) as span:
                    result = await func(*args, **kwargs)
                    if capture_output:
                        span.set_attribute("output", str(result))
                    return result

            return async_wrapper

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            with _operation_span(func, args, kwargs, **span_options) as span:
                result = func(*args, **kwargs)
                if capture_output:
                    span.set_attribute("output", str(result))
                return result

        return sync_wrapper

    return decorator
