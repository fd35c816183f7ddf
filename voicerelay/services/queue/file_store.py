"""
JSON file slot store.

Each write goes to a sibling ``.tmp`` file, is fsynced, and is then moved
over the target with ``os.replace``, so a crash or power loss mid-write
leaves the previous contents intact. Blocking file I/O runs in a worker
thread.
"""

import asyncio
import logging
import os
from pathlib import Path

from voicerelay.core.exceptions import PersistenceError
from voicerelay.services.queue.base import BaseSlotStore

logger = logging.getLogger(__name__)


class JsonFileStore(BaseSlotStore):
    """Slot backed by a single file on disk.

    Args:
        path: Target file. Parent directories are created on first write.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def name(self) -> str:
        return str(self._path)

    async def read(self) -> str | None:
        return await asyncio.to_thread(self._read_sync)

    async def write(self, payload: str) -> None:
        await asyncio.to_thread(self._write_sync, payload)

    def _read_sync(self) -> str | None:
        try:
            return self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceError(f"Cannot read offline queue {self._path}: {exc}") from exc

    def _write_sync(self, payload: str) -> None:
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self._path)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            raise PersistenceError(f"Cannot write offline queue {self._path}: {exc}") from exc
        logger.debug("Wrote %d bytes to %s", len(payload), self._path)
