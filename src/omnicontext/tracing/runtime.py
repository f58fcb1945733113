"""Tracer provider override installed by OmniContextInstrumentor."""

from __future__ import annotations

from opentelemetry import trace

_is_instrumented = False
_tracer_provider: trace.TracerProvider | None = None
_capture_session_keys = True


def _set_tracer_provider(tracer_provider: trace.TracerProvider | None) -> None:
    global _tracer_provider
    _tracer_provider = tracer_provider


def _clear_tracer_provider() -> None:
    _set_tracer_provider(None)


def _set_instrumented(flag: bool) -> None:
    global _is_instrumented
    _is_instrumented = flag


def _set_capture_session_keys(flag: bool) -> None:
    global _capture_session_keys
    _capture_session_keys = bool(flag)


def capture_session_keys() -> bool:
    return _capture_session_keys


def is_instrumented() -> bool:
    return _is_instrumented


def _get_tracer(module_name: str) -> trace.Tracer:
    # Falls back to the global provider until instrumented
    return trace.get_tracer(module_name, tracer_provider=_tracer_provider)
