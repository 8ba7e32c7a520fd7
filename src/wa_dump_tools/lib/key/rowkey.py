from __future__ import annotations

import logging

from wa_dump_tools.lib.key.key import Key

l = logging.getLogger(__name__)


class RowKey(Key):
    """The AES key the browser uses for msgRowOpaqueData."""

    VALID_SIZES = (16, 24, 32)

    def __init__(self, keyarray: bytes = None):
        if not isinstance(keyarray, (bytes, bytearray)):
            raise ValueError("keyarray is not a byte array!")
        if len(keyarray) not in RowKey.VALID_SIZES:
            raise ValueError("Invalid key length: {}".format(len(keyarray)))
        self.__key = bytes(keyarray)

    @staticmethod
    def from_hex(hexstring: str) -> RowKey:
        try:
            barr = bytes.fromhex(hexstring)
        except ValueError as e:
            raise ValueError("Key is not in hexadecimal format: {}".format(e)) from e
        return RowKey(barr)

    def get(self) -> bytes:
        return self.__key

    def dump(self) -> bytes:
        return self.__key

    def __eq__(self, other) -> bool:
        return isinstance(other, RowKey) and other.get() == self.__key

    def __hash__(self) -> int:
        return hash(self.__key)

    def __str__(self) -> str:
        return "RowKey(key: {})".format(self.__key.hex())

    def __repr__(self) -> str:
        return self.__str__()
