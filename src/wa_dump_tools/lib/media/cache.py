"""
Content-addressed stores for decrypted media.
"""
from __future__ import annotations

import abc
import logging
from hashlib import sha256
from pathlib import Path

log = logging.getLogger(__name__)


class MediaCache(abc.ABC):
    @abc.abstractmethod
    async def get(self, key: str) -> bytes | None:
        pass

    @abc.abstractmethod
    async def put(self, key: str, data: bytes):
        pass


class MemoryMediaCache(MediaCache):
    def __init__(self, entries: dict[str, bytes] = None):
        self.entries = entries if entries is not None else {}

    async def get(self, key: str) -> bytes | None:
        return self.entries.get(key)

    async def put(self, key: str, data: bytes):
        self.entries[key] = bytes(data)


class DirectoryMediaCache(MediaCache):
    """One file per entry, named after the SHA-256 of the cache key."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / sha256(key.encode('utf-8')).hexdigest()

    async def get(self, key: str) -> bytes | None:
        path = self._path(key)
        if not path.is_file():
            return None
        with open(path, 'rb') as f:
            return f.read()

    async def put(self, key: str, data: bytes):
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        with open(tmp, 'wb') as f:
            f.write(data)
        tmp.replace(path)
        log.debug("Cached {} bytes as {}".format(len(data), path.name))
