"""JSON file per session key."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
from pathlib import Path

from opentelemetry.trace import SpanKind

from omnicontext.context.drivers.base import Records, StorageDriver
from omnicontext.context.identity import SessionIdentity
from omnicontext.exceptions import StorageReadError
from omnicontext.tracing import CustomSpanKinds, trace_operation

logger = logging.getLogger(__name__)

DEFAULT_FOLDER = "omnicontext_storage"
_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_\-]")


class FileDriver(StorageDriver):
    """Stores each identity's records as a pretty-printed JSON array in ``folder``.

    Keys are sanitised to ``[A-Za-z0-9_-]`` to form the file name. Only a
    missing file reads as "no record"; a file that cannot be read or does not
    hold a JSON array raises StorageReadError so it is never overwritten
    silently.
    """

    driver_name = "file"

    def __init__(self, folder: str | os.PathLike[str] = DEFAULT_FOLDER):
        self.folder = Path(folder)

    def path_for(self, identity: SessionIdentity) -> Path:
        safe_key = _UNSAFE_KEY_CHARS.sub("_", identity.get_key())
        return self.folder / f"{safe_key}.json"

    @trace_operation(kind=SpanKind.INTERNAL, open_inference_kind=CustomSpanKinds.FILE, category="storage")
    async def read(self, identity: SessionIdentity) -> Records | None:
        return await asyncio.to_thread(self._read_file, self.path_for(identity))

    @trace_operation(kind=SpanKind.INTERNAL, open_inference_kind=CustomSpanKinds.FILE, category="storage")
    async def write(self, identity: SessionIdentity, data: Records) -> bool:
        return await asyncio.to_thread(self._write_file, self.path_for(identity), data)

    @trace_operation(kind=SpanKind.INTERNAL, open_inference_kind=CustomSpanKinds.FILE, category="storage")
    async def remove(self, identity: SessionIdentity) -> bool:
        path = self.path_for(identity)
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as exc:
            logger.warning("Failed to remove %s: %s", path, exc)
            return False
        return True

    def _read_file(self, path: Path) -> Records | None:
        if not path.is_file():
            return None
        try:
            with path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as exc:
            raise StorageReadError(
                "Storage file is unreadable",
                details=f"path={path}, error={exc}",
            ) from exc
        if not isinstance(data, list):
            raise StorageReadError(
                "Storage file does not hold a JSON array",
                details=f"path={path}, type={type(data).__name__}",
            )
        return data

    def _write_file(self, path: Path, data: Records) -> bool:
        tmp_path = path.with_suffix(".json.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Failed to write storage file %s: %s", path, exc)
            tmp_path.unlink(missing_ok=True)
            return False
        return True


__all__ = ["FileDriver", "DEFAULT_FOLDER"]
