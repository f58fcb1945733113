"""Storage driver contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from omnicontext.context.identity import SessionIdentity

Records = list[dict[str, Any]]


class StorageDriver(ABC):
    """
    Adapter between one physical backend and the storage orchestrator.

    ``read`` returns None when the backend holds nothing for the identity and
    raises only for failures that leave no usable state. ``write`` and
    ``remove`` never raise for backend failures: they log and return False.
    """

    driver_name: ClassVar[str] = "driver"

    @property
    def name(self) -> str:
        return self.driver_name

    @abstractmethod
    async def read(self, identity: SessionIdentity) -> Records | None:
        ...

    @abstractmethod
    async def write(self, identity: SessionIdentity, data: Records) -> bool:
        ...

    @abstractmethod
    async def remove(self, identity: SessionIdentity) -> bool:
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


__all__ = ["StorageDriver", "Records"]
