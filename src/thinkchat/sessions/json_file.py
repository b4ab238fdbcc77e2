"""JSON file session storage backend.

Stores each key as one file in a data directory. Writes go to a temporary
file in the same directory and are moved into place with os.replace, so a
crash mid-write never leaves a truncated blob behind.
"""

import asyncio
import logging
import os
import re
import tempfile
from pathlib import Path

from ..errors import PersistenceReadError, PersistenceWriteError
from .base import SessionStorage

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class JsonFileSessionStorage(SessionStorage):
    """File-backed key-value storage.

    Each key maps to `<data_dir>/<key>.json`. File I/O runs in a worker
    thread so the event loop is never blocked by disk access.
    """

    def __init__(self, path: str | Path = "~/.thinkchat"):
        self._data_dir = Path(path).expanduser()

    async def connect(self) -> None:
        """Create the data directory if needed."""
        try:
            await asyncio.to_thread(self._data_dir.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceWriteError(
                f"Cannot create data directory {self._data_dir}: {e}"
            ) from e

    async def disconnect(self) -> None:
        """Nothing to release for plain files."""
        pass

    def path_for(self, key: str) -> Path:
        """Get the file path used for a key."""
        return self._data_dir / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    async def read(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            blob = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceReadError(f"Cannot read {path}: {e}") from e
        logger.debug(f"Read {len(blob)} chars from {path}")
        return blob

    async def write(self, key: str, blob: str) -> None:
        path = self.path_for(key)
        try:
            await asyncio.to_thread(self._atomic_write, path, blob)
        except OSError as e:
            raise PersistenceWriteError(f"Cannot write {path}: {e}") from e
        logger.debug(f"Wrote {len(blob)} chars to {path}")

    async def delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as e:
            raise PersistenceWriteError(f"Cannot delete {path}: {e}") from e

    @staticmethod
    def _atomic_write(path: Path, blob: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(blob)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    @property
    def backend_type(self) -> str:
        return "json"

    @property
    def data_dir(self) -> Path:
        return self._data_dir
