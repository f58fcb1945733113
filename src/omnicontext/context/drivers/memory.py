"""Process-local driver backed by a dict."""

from __future__ import annotations

import copy
from typing import Any

from opentelemetry.trace import SpanKind

from omnicontext.context.drivers.base import Records, StorageDriver
from omnicontext.context.identity import SessionIdentity
from omnicontext.tracing import CustomSpanKinds, trace_operation


class InMemoryDriver(StorageDriver):
    """Keeps records in a dict for the lifetime of the process.

    Pass the same ``store`` to several drivers to let them share state.
    Records are deep-copied in and out so callers never alias stored data.
    """

    driver_name = "memory"

    def __init__(self, store: dict[str, Records] | None = None):
        self._store: dict[str, Records] = store if store is not None else {}

    @trace_operation(kind=SpanKind.INTERNAL, open_inference_kind=CustomSpanKinds.MEMORY, category="storage")
    async def read(self, identity: SessionIdentity) -> Records | None:
        data = self._store.get(identity.get_key())
        if data is None:
            return None
        return copy.deepcopy(data)

    @trace_operation(kind=SpanKind.INTERNAL, open_inference_kind=CustomSpanKinds.MEMORY, category="storage")
    async def write(self, identity: SessionIdentity, data: Records) -> bool:
        self._store[identity.get_key()] = copy.deepcopy(list(data))
        return True

    @trace_operation(kind=SpanKind.INTERNAL, open_inference_kind=CustomSpanKinds.MEMORY, category="storage")
    async def remove(self, identity: SessionIdentity) -> bool:
        self._store.pop(identity.get_key(), None)
        return True

    def keys(self) -> list[str]:
        return list(self._store)

    def snapshot(self) -> dict[str, Any]:
        return copy.deepcopy(self._store)


__all__ = ["InMemoryDriver"]
