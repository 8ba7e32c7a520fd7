from __future__ import annotations

import binascii
import logging
from typing import NamedTuple

from wa_dump_tools.lib.constants import C
from wa_dump_tools.lib.errors import UnsupportedTypeError
from wa_dump_tools.lib.key.key import Key
from wa_dump_tools.lib.utils import b64decode_field, encryptionloop

l = logging.getLogger(__name__)


class MediaKeyBundle(NamedTuple):
    iv: bytes
    enc_key: bytes
    mac_key: bytes
    ref_key: bytes


def media_hkdf_info(media_type: str) -> bytes:
    """HKDF info for encrypted WhatsApp media"""
    try:
        return C.MEDIA_HKDF_INFO[media_type]
    except (KeyError, TypeError):
        raise UnsupportedTypeError(media_type) from None


def is_media_message(media_type) -> bool:
    return media_type in C.MEDIA_TYPES


class MediaKey(Key):
    def __init__(self, keyarray: bytes = None, media_type: str = None):
        """Expands the mediaKey of a message into the keys for its attachment."""
        # The 32 bytes mediaKey is stretched with HKDF-SHA256 into 112 bytes.
        # The info string depends on the media category, so the same mediaKey
        # gives different keys for an image and a video.
        # The 112 bytes are, in order: IV (16), AES key (32), HMAC key (32) and
        # a reference key (32) used by the CDN, which we do not need.
        if not isinstance(keyarray, (bytes, bytearray)):
            raise ValueError("keyarray is not a byte array!")
        info = media_hkdf_info(media_type)
        self.__key = bytes(keyarray)
        self.media_type = media_type
        expanded = encryptionloop(first_iteration_data=self.__key,
                                  message=info,
                                  output_bytes=C.MEDIA_KEY_EXPANDED_SIZE)
        self.__bundle = MediaKeyBundle(
            iv=expanded[:16],
            enc_key=expanded[16:48],
            mac_key=expanded[48:80],
            ref_key=expanded[80:112],
        )

    @staticmethod
    def from_base64(media_type: str, media_key: str) -> MediaKey:
        # Check the type first, a bad type must fail even with a bad key
        media_hkdf_info(media_type)
        try:
            keyarray = b64decode_field(media_key)
        except (binascii.Error, TypeError) as e:
            raise ValueError("mediaKey is not valid base64: {}".format(e)) from e
        return MediaKey(keyarray, media_type)

    @property
    def bundle(self) -> MediaKeyBundle:
        return self.__bundle

    def get(self) -> bytes:
        """Returns the AES key, not the mediaKey."""
        return self.__bundle.enc_key

    def get_iv(self) -> bytes:
        return self.__bundle.iv

    def get_mac(self) -> bytes:
        return self.__bundle.mac_key

    def get_root(self) -> bytes:
        return self.__key

    def dump(self) -> bytes:
        """Dumps the expanded key material"""
        return b''.join(self.__bundle)

    def __str__(self) -> str:
        return "MediaKey({}, key: {})".format(self.media_type, self.__key.hex())

    def __repr__(self) -> str:
        return self.__str__()


def derive_media_keys(media_type: str, media_key: str) -> MediaKeyBundle:
    """Generates the keys of a media message from its base64 mediaKey field."""
    return MediaKey.from_base64(media_type, media_key).bundle
