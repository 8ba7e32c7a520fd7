"""
Helpers for the raw records of the browser's "message" object store.

Records are plain dicts, exactly as the host stores them. Only the fields
the dumper needs are interpreted here.
"""
from __future__ import annotations

from typing import NamedTuple

from wa_dump_tools.lib.utils import b64decode_field

OPAQUE_DATA_FIELD = "msgRowOpaqueData"


class OpaqueData(NamedTuple):
    iv: bytes
    data: bytes

    @staticmethod
    def from_record(record: dict) -> OpaqueData | None:
        opaque = record.get(OPAQUE_DATA_FIELD)
        if not opaque:
            return None
        return OpaqueData(iv=b64decode_field(opaque["iv"]), data=b64decode_field(opaque["_data"]))


def record_id(record: dict):
    """Message ids are either strings or serialized id objects."""
    rid = record.get("id")
    if isinstance(rid, dict):
        return rid.get("_serialized", str(rid))
    return rid


def is_chat_row(record: dict) -> bool:
    """True for text messages that carry an encrypted row, the only ones we can test a key against."""
    return bool(record.get(OPAQUE_DATA_FIELD)) and record.get("type") == "chat"
