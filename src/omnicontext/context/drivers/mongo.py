"""MongoDB driver (Beanie)."""

from __future__ import annotations

import logging

from opentelemetry.trace import SpanKind
from pymongo.errors import PyMongoError

from omnicontext.context.drivers.base import Records, StorageDriver
from omnicontext.context.identity import SessionIdentity
from omnicontext.exceptions import StorageReadError
from omnicontext.schemas.mongo import StoredContext
from omnicontext.tracing import CustomSpanKinds, trace_operation

logger = logging.getLogger(__name__)


class MongoDriver(StorageDriver):
    """One document per key holding the ordered records in ``data``.

    The document model must be registered with Beanie (see MongoDB.init).
    """

    driver_name = "mongo"

    def __init__(self, document_model: type[StoredContext] = StoredContext):
        self.document_model = document_model

    @trace_operation(kind=SpanKind.CLIENT, open_inference_kind=CustomSpanKinds.DATABASE, category="storage")
    async def read(self, identity: SessionIdentity) -> Records | None:
        key = identity.get_key()
        try:
            document = await self.document_model.find_one(self.document_model.key == key)
        except PyMongoError as exc:
            raise StorageReadError(
                "Failed to read stored collection",
                details=f"collection={self.document_model.__name__}, key={key}, error={exc}",
            ) from exc
        if document is None:
            return None
        return list(document.data)

    @trace_operation(kind=SpanKind.CLIENT, open_inference_kind=CustomSpanKinds.DATABASE, category="storage")
    async def write(self, identity: SessionIdentity, data: Records) -> bool:
        key = identity.get_key()
        try:
            document = await self.document_model.find_one(self.document_model.key == key)
            if document is None:
                await self.document_model(key=key, data=list(data)).insert()
            else:
                document.data = list(data)
                document.touch()
                await document.save()
        except PyMongoError as exc:
            logger.warning("Failed to write stored collection for %s: %s", key, exc)
            return False
        return True

    @trace_operation(kind=SpanKind.CLIENT, open_inference_kind=CustomSpanKinds.DATABASE, category="storage")
    async def remove(self, identity: SessionIdentity) -> bool:
        key = identity.get_key()
        try:
            await self.document_model.find(self.document_model.key == key).delete()
        except PyMongoError as exc:
            logger.warning("Failed to remove stored collection for %s: %s", key, exc)
            return False
        return True


__all__ = ["MongoDriver"]
