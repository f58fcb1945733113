"""
Beanie lifecycle for the Mongo driver.
"""

from __future__ import annotations

import logging
from typing import Sequence

from beanie import Document, init_beanie
from opentelemetry.trace import SpanKind
from pymongo import AsyncMongoClient

from omnicontext.context.types import MongoConfig
from omnicontext.exceptions import StorageNotInitializedError
from omnicontext.schemas.mongo import StoredContext
from omnicontext.tracing import CustomSpanKinds, trace_operation

logger = logging.getLogger(__name__)

_lifecycle_span = trace_operation(
    kind=SpanKind.INTERNAL,
    open_inference_kind=CustomSpanKinds.DATABASE,
    capture_input=False,
    capture_output=False,
)


class MongoDB:
    """Owns the client that backs every MongoDriver document model."""

    _client: AsyncMongoClient | None = None
    _initialized: bool = False

    @classmethod
    @_lifecycle_span
    async def init(
        cls,
        config: MongoConfig,
        document_models: Sequence[type[Document]] | None = None,
    ) -> None:
        """
        Connect and register ``document_models`` (StoredContext by default) with Beanie.

        Calling it again while initialized does nothing.
        """
        if cls._initialized:
            return

        models = list(document_models or [StoredContext])
        cls._client = AsyncMongoClient(config.connection_uri())
        await init_beanie(
            database=cls._client[config.db_name],
            document_models=models,
            allow_index_dropping=config.allow_index_dropping,
        )
        cls._initialized = True
        logger.debug("Beanie initialized on %s with %s", config.db_name, [model.__name__ for model in models])

    @classmethod
    @_lifecycle_span
    async def close(cls) -> None:
        client, cls._client, cls._initialized = cls._client, None, False
        if client is not None:
            await client.close()

    @classmethod
    def get_client(cls) -> AsyncMongoClient:
        if cls._client is None:
            raise StorageNotInitializedError("MongoDB is not initialized. Call MongoDB.init(...) first.")
        return cls._client

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._initialized


__all__ = ["MongoDB"]
