"""Driver over a request-scoped session mapping."""

from __future__ import annotations

import json
import logging
from typing import Any, MutableMapping

from opentelemetry.trace import SpanKind

from omnicontext.context.drivers.base import Records, StorageDriver
from omnicontext.context.identity import SessionIdentity
from omnicontext.exceptions import StorageReadError
from omnicontext.tracing import CustomSpanKinds, trace_operation

logger = logging.getLogger(__name__)


class SessionDriver(StorageDriver):
    """Stores JSON-encoded records inside a web session (or any mutable mapping).

    Session backends usually serialize their contents, so values are kept as
    JSON strings. ``bind`` swaps in the mapping of the current request. An
    entry that does not decode to a list raises StorageReadError.
    """

    driver_name = "session"

    def __init__(self, session: MutableMapping[str, Any] | None = None, *, prefix: str = "omnicontext."):
        self.session: MutableMapping[str, Any] = session if session is not None else {}
        self.prefix = prefix

    def bind(self, session: MutableMapping[str, Any]) -> SessionDriver:
        self.session = session
        return self

    def session_key(self, identity: SessionIdentity) -> str:
        return f"{self.prefix}{identity.get_key()}"

    @trace_operation(kind=SpanKind.INTERNAL, open_inference_kind=CustomSpanKinds.MEMORY, category="storage")
    async def read(self, identity: SessionIdentity) -> Records | None:
        raw = self.session.get(self.session_key(identity))
        if raw is None:
            return None
        key = self.session_key(identity)
        try:
            data = json.loads(raw) if isinstance(raw, str) else raw
        except ValueError as exc:
            raise StorageReadError("Corrupt session entry", details=f"key={key}, error={exc}") from exc
        if not isinstance(data, list):
            raise StorageReadError("Session entry is not a JSON array", details=f"key={key}")
        return list(data)

    @trace_operation(kind=SpanKind.INTERNAL, open_inference_kind=CustomSpanKinds.MEMORY, category="storage")
    async def write(self, identity: SessionIdentity, data: Records) -> bool:
        try:
            self.session[self.session_key(identity)] = json.dumps(data)
        except (TypeError, ValueError) as exc:
            logger.warning("Session write failed for %s: %s", self.session_key(identity), exc)
            return False
        return True

    @trace_operation(kind=SpanKind.INTERNAL, open_inference_kind=CustomSpanKinds.MEMORY, category="storage")
    async def remove(self, identity: SessionIdentity) -> bool:
        self.session.pop(self.session_key(identity), None)
        return True


__all__ = ["SessionDriver"]
