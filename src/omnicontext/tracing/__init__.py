"""Public tracing API for OmniContext."""

from omnicontext.tracing.decorators import (
    SESSION_KEY_ATTRIBUTE,
    CustomSpanKinds,
    trace_operation,
)
from omnicontext.tracing.instrumentation import OmniContextInstrumentor
from omnicontext.tracing.runtime import is_instrumented

__all__ = [
    "trace_operation",
    "CustomSpanKinds",
    "SESSION_KEY_ATTRIBUTE",
    "OmniContextInstrumentor",
    "is_instrumented",
]
