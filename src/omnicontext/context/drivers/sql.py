"""SQL drivers: one row per record, or one JSON blob per key."""

from __future__ import annotations

import logging
from typing import Callable

from opentelemetry.trace import SpanKind
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from omnicontext.context.drivers.base import Records, StorageDriver
from omnicontext.context.identity import SessionIdentity
from omnicontext.exceptions import StorageNotInitializedError, StorageReadError
from omnicontext.schemas.sql import ContextBlobRow, RecordRowMixin
from omnicontext.tracing import CustomSpanKinds, trace_operation

logger = logging.getLogger(__name__)

SessionFactory = async_sessionmaker[AsyncSession]

_WRITE_ERRORS = (SQLAlchemyError, StorageNotInitializedError, TypeError, ValueError)


def _default_sessionmaker() -> SessionFactory:
    from omnicontext.db.sql import get_sessionmaker

    return get_sessionmaker()


class _SQLDriver(StorageDriver):
    def __init__(self, sessionmaker: SessionFactory | Callable[[], SessionFactory] | None = None):
        self._sessionmaker = sessionmaker

    @property
    def sessionmaker(self) -> SessionFactory:
        """The bound sessionmaker, or the one from SQLDatabase when none was given."""
        if self._sessionmaker is None:
            return _default_sessionmaker()
        if isinstance(self._sessionmaker, async_sessionmaker):
            return self._sessionmaker
        return self._sessionmaker()


class RelationalDriver(_SQLDriver):
    """
    Stores each record as its own row: ``session_key``, ``position`` and one
    column per record field (see RecordRowMixin).

    A write replaces all rows of the key in one transaction (delete, then bulk
    insert). Any error rolls the transaction back and the write returns False.
    """

    driver_name = "sql"

    def __init__(
        self,
        model: type[RecordRowMixin],
        sessionmaker: SessionFactory | Callable[[], SessionFactory] | None = None,
    ):
        super().__init__(sessionmaker)
        self.model = model

    @property
    def name(self) -> str:
        return f"{self.driver_name}:{self.model.__tablename__}"

    @trace_operation(kind=SpanKind.CLIENT, open_inference_kind=CustomSpanKinds.DATABASE, category="storage")
    async def read(self, identity: SessionIdentity) -> Records | None:
        key = identity.get_key()
        try:
            async with self.sessionmaker() as session:
                result = await session.execute(
                    select(self.model)
                    .where(self.model.session_key == key)
                    .order_by(self.model.position.asc())
                )
                rows = list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise StorageReadError(
                "Failed to read records",
                details=f"table={self.model.__tablename__}, key={key}, error={exc}",
            ) from exc
        if not rows:
            return None
        return [row.to_record() for row in rows]

    @trace_operation(kind=SpanKind.CLIENT, open_inference_kind=CustomSpanKinds.DATABASE, category="storage")
    async def write(self, identity: SessionIdentity, data: Records) -> bool:
        key = identity.get_key()
        try:
            async with self.sessionmaker() as session:
                async with session.begin():
                    await session.execute(delete(self.model).where(self.model.session_key == key))
                    session.add_all(
                        [self.model.from_record(key, position, record) for position, record in enumerate(data)]
                    )
        except _WRITE_ERRORS as exc:
            logger.warning("Failed to write %s rows for %s: %s", self.model.__tablename__, key, exc)
            return False
        return True

    @trace_operation(kind=SpanKind.CLIENT, open_inference_kind=CustomSpanKinds.DATABASE, category="storage")
    async def remove(self, identity: SessionIdentity) -> bool:
        key = identity.get_key()
        try:
            async with self.sessionmaker() as session:
                async with session.begin():
                    await session.execute(delete(self.model).where(self.model.session_key == key))
        except _WRITE_ERRORS as exc:
            logger.warning("Failed to remove %s rows for %s: %s", self.model.__tablename__, key, exc)
            return False
        return True

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model.__name__})"


class SQLBlobDriver(_SQLDriver):
    """Stores a whole collection as one JSON value per key (upserted)."""

    driver_name = "sql_blob"

    def __init__(
        self,
        sessionmaker: SessionFactory | Callable[[], SessionFactory] | None = None,
        model: type[ContextBlobRow] = ContextBlobRow,
    ):
        super().__init__(sessionmaker)
        self.model = model

    @trace_operation(kind=SpanKind.CLIENT, open_inference_kind=CustomSpanKinds.DATABASE, category="storage")
    async def read(self, identity: SessionIdentity) -> Records | None:
        key = identity.get_key()
        try:
            async with self.sessionmaker() as session:
                result = await session.execute(select(self.model).where(self.model.key == key))
                row = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageReadError(
                "Failed to read stored collection",
                details=f"table={self.model.__tablename__}, key={key}, error={exc}",
            ) from exc
        if row is None or not isinstance(row.data, list):
            return None
        return list(row.data)

    @trace_operation(kind=SpanKind.CLIENT, open_inference_kind=CustomSpanKinds.DATABASE, category="storage")
    async def write(self, identity: SessionIdentity, data: Records) -> bool:
        key = identity.get_key()
        try:
            async with self.sessionmaker() as session:
                async with session.begin():
                    result = await session.execute(select(self.model).where(self.model.key == key))
                    row = result.scalar_one_or_none()
                    if row is None:
                        session.add(self.model(key=key, data=list(data)))
                    else:
                        row.data = list(data)
        except _WRITE_ERRORS as exc:
            logger.warning("Failed to write stored collection for %s: %s", key, exc)
            return False
        return True

    @trace_operation(kind=SpanKind.CLIENT, open_inference_kind=CustomSpanKinds.DATABASE, category="storage")
    async def remove(self, identity: SessionIdentity) -> bool:
        key = identity.get_key()
        try:
            async with self.sessionmaker() as session:
                async with session.begin():
                    await session.execute(delete(self.model).where(self.model.key == key))
        except _WRITE_ERRORS as exc:
            logger.warning("Failed to remove stored collection for %s: %s", key, exc)
            return False
        return True


__all__ = ["RelationalDriver", "SQLBlobDriver"]
