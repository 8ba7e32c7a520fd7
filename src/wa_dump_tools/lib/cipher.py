"""
The browser's symmetric decrypt primitive, re-implemented with pycryptodomex.

The browser decrypts message rows with ``crypto.subtle.decrypt(algorithm,
key, data)``. We mirror its semantics for the AES modes WhatsApp can use, so
that a captured (algorithm, key) pair decrypts rows exactly like the browser
would.
"""
from __future__ import annotations

import logging

from Cryptodome.Cipher import AES
from Cryptodome.Util.Padding import unpad

from wa_dump_tools.lib.errors import UnsupportedAlgorithmError
from wa_dump_tools.lib.key.rowkey import RowKey

log = logging.getLogger(__name__)


class Algorithm:
    """An algorithm identifier and its parameters, as passed to the decrypt primitive."""

    SUPPORTED = ("AES-CBC", "AES-GCM")

    def __init__(self, name: str, iv: bytes = None, tag_length: int = 128, additional_data: bytes = None):
        self.name = name
        self.iv = iv
        self.tag_length = tag_length
        self.additional_data = additional_data

    def with_iv(self, iv: bytes) -> Algorithm:
        return Algorithm(self.name, iv=iv, tag_length=self.tag_length, additional_data=self.additional_data)

    def without_iv(self) -> Algorithm:
        return self.with_iv(None)

    @staticmethod
    def from_dict(params: dict) -> Algorithm:
        """Reads an algorithm as captured from the browser: {"name": ..., "iv": hex, "tagLength": ...}"""
        iv = params.get("iv")
        additional_data = params.get("additionalData")
        return Algorithm(params["name"],
                         iv=bytes.fromhex(iv) if iv is not None else None,
                         tag_length=params.get("tagLength", 128),
                         additional_data=bytes.fromhex(additional_data) if additional_data is not None else None)

    def __eq__(self, other) -> bool:
        return isinstance(other, Algorithm) and (self.name, self.iv, self.tag_length, self.additional_data) == \
            (other.name, other.iv, other.tag_length, other.additional_data)

    def __repr__(self) -> str:
        return "Algorithm(name={}, iv={})".format(self.name, self.iv.hex() if self.iv is not None else None)


def decrypt(algorithm: Algorithm, key: RowKey, data: bytes) -> bytes:
    """Decrypts data. Raises ValueError if the key, IV, padding or tag do not fit."""
    if algorithm.iv is None:
        raise ValueError("No IV given for {}".format(algorithm.name))
    if algorithm.name == "AES-CBC":
        cipher = AES.new(key.get(), AES.MODE_CBC, algorithm.iv)
        # PKCS#7 padding, like the browser
        return unpad(cipher.decrypt(data), AES.block_size)
    elif algorithm.name == "AES-GCM":
        tag_size = algorithm.tag_length // 8
        if len(data) < tag_size:
            raise ValueError("Data is shorter than the authentication tag")
        cipher = AES.new(key.get(), AES.MODE_GCM, nonce=algorithm.iv, mac_len=tag_size)
        if algorithm.additional_data:
            cipher.update(algorithm.additional_data)
        return cipher.decrypt_and_verify(data[:-tag_size], data[-tag_size:])
    raise UnsupportedAlgorithmError("Unsupported algorithm {}".format(algorithm.name))


class HostCrypto:
    """The host's decrypt primitive. Key discovery intercepts its ``decrypt`` attribute."""

    async def decrypt(self, algorithm: Algorithm, key: RowKey, data: bytes) -> bytes:
        return decrypt(algorithm, key, data)
