"""Read fallback and write fan-out across an ordered list of drivers."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Sequence

from omnicontext.context.drivers.base import Records, StorageDriver
from omnicontext.context.identity import SessionIdentity
from omnicontext.exceptions import DriverConfigurationError, StorageReadError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DriverWriteResult:
    """Outcome of one driver's write or remove call."""

    driver: str
    ok: bool
    error: BaseException | None = None


@dataclass(slots=True)
class WriteReport:
    """Per-driver outcomes of one fan-out."""

    outcomes: list[DriverWriteResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.outcomes) and all(outcome.ok for outcome in self.outcomes)

    @property
    def failed(self) -> list[DriverWriteResult]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    def __bool__(self) -> bool:
        return self.ok


class StorageManager:
    """
    Coordinates the drivers of one storage.

    The first driver is the primary; reads fall back through the rest in
    order. Writes and removes go to every driver concurrently and one failing
    driver never blocks or aborts the others.
    """

    def __init__(self, drivers: Sequence[StorageDriver | type[StorageDriver]]):
        if not drivers:
            raise DriverConfigurationError("A storage needs at least one driver")
        self.drivers: list[StorageDriver] = [self._resolve_driver(driver) for driver in drivers]

    @staticmethod
    def _resolve_driver(driver: StorageDriver | type[StorageDriver]) -> StorageDriver:
        if isinstance(driver, StorageDriver):
            return driver
        if isinstance(driver, type) and issubclass(driver, StorageDriver):
            return driver()
        raise DriverConfigurationError(
            "Drivers must be StorageDriver instances or classes",
            details=f"got={driver!r}",
        )

    @property
    def primary(self) -> StorageDriver:
        return self.drivers[0]

    @property
    def secondaries(self) -> list[StorageDriver]:
        return self.drivers[1:]

    async def read(self, identity: SessionIdentity) -> Records | None:
        """Return the first non-None result in driver order; later drivers are not consulted."""
        for driver in self.drivers:
            try:
                data = await driver.read(identity)
            except StorageReadError:
                raise
            except Exception as exc:
                raise StorageReadError(
                    f"Driver '{driver.name}' failed to read",
                    details=f"key={identity.get_key()}, error={exc}",
                ) from exc
            if data is not None:
                logger.debug("Loaded %s records for %s from %s", len(data), identity.get_key(), driver.name)
                return data
        logger.debug("No driver holds data for %s", identity.get_key())
        return None

    async def write(self, identity: SessionIdentity, data: Records) -> WriteReport:
        results = await asyncio.gather(
            *(driver.write(identity, data) for driver in self.drivers),
            return_exceptions=True,
        )
        return self._report("write", identity, results)

    async def remove(self, identity: SessionIdentity) -> WriteReport:
        results = await asyncio.gather(
            *(driver.remove(identity) for driver in self.drivers),
            return_exceptions=True,
        )
        return self._report("remove", identity, results)

    def _report(self, operation: str, identity: SessionIdentity, results: list) -> WriteReport:
        report = WriteReport()
        for driver, result in zip(self.drivers, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(
                    "Driver %s raised during %s for %s: %s",
                    driver.name,
                    operation,
                    identity.get_key(),
                    result,
                )
                report.outcomes.append(DriverWriteResult(driver=driver.name, ok=False, error=result))
                continue
            ok = result is True
            if not ok:
                logger.warning("Driver %s failed to %s %s", driver.name, operation, identity.get_key())
            report.outcomes.append(DriverWriteResult(driver=driver.name, ok=ok))
        return report


__all__ = [
    "DriverWriteResult",
    "WriteReport",
    "StorageManager",
]
