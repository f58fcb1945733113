"""Wires storage, driver and truncation spans to a tracer provider."""

from __future__ import annotations

import logging
from collections.abc import Collection
from typing import Any

from opentelemetry import trace
from opentelemetry.instrumentation.instrumentor import BaseInstrumentor

from omnicontext.tracing import runtime

logger = logging.getLogger(__name__)


class OmniContextInstrumentor(BaseInstrumentor):  # type: ignore[misc]
    """
    Route ``trace_operation`` spans to ``tracer_provider`` (the global one by default).

    Session keys embed user and group ids. Pass ``capture_session_keys=False``
    to keep them off the spans.
    """

    def instrumentation_dependencies(self) -> Collection[str]:
        # nothing third-party is patched
        return ()

    def _instrument(self, **kwargs: Any) -> None:
        provider = kwargs.get("tracer_provider") or trace.get_tracer_provider()
        runtime._set_tracer_provider(provider)
        runtime._set_capture_session_keys(kwargs.get("capture_session_keys", True))
        runtime._set_instrumented(True)
        logger.debug("omnicontext spans routed to %s", type(provider).__name__)

    def _uninstrument(self, **kwargs: Any) -> None:
        runtime._clear_tracer_provider()
        runtime._set_capture_session_keys(True)
        runtime._set_instrumented(False)


__all__ = ["OmniContextInstrumentor"]
