"""
Where the raw records come from.

The dumper only needs two operations on the browser's object stores: read a
whole store, and find the first record matching a predicate.
"""
from __future__ import annotations

import abc
import json
import logging
from pathlib import Path
from typing import Callable

log = logging.getLogger(__name__)


class RecordSource(abc.ABC):
    @abc.abstractmethod
    async def get_all(self, store: str) -> list[dict]:
        """Returns every record of an object store, in store order."""
        pass

    async def first(self, store: str, predicate: Callable[[dict], bool]) -> dict | None:
        for record in await self.get_all(store):
            if predicate(record):
                return record
        return None


class MemoryRecordSource(RecordSource):
    def __init__(self, stores: dict[str, list[dict]]):
        self.stores = stores

    async def get_all(self, store: str) -> list[dict]:
        return self.stores.get(store, [])


class JsonRecordSource(RecordSource):
    """Reads ``<store>.json`` files from a directory. Each file holds a JSON array of records.
    Binary values (the IV and data of msgRowOpaqueData) are expected as base64 strings."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        if not self.directory.is_dir():
            raise OSError("Record directory {} does not exist".format(self.directory))

    async def get_all(self, store: str) -> list[dict]:
        path = self.directory / "{}.json".format(store)
        if not path.is_file():
            log.warning("Object store {} not found in {}".format(store, self.directory))
            return []
        log.debug("Reading object store {}".format(store))
        with open(path, 'r', encoding='utf-8') as f:
            records = json.load(f)
        if not isinstance(records, list):
            raise ValueError("{} does not contain a JSON array".format(path))
        return records
