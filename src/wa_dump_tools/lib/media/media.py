import logging

from Cryptodome.Cipher import AES
from Cryptodome.Util.Padding import unpad

from wa_dump_tools.lib.constants import C
from wa_dump_tools.lib.key.mediakey import MediaKeyBundle

log = logging.getLogger(__name__)


def decrypt_media_blob(keys: MediaKeyBundle, ciphertext: bytes) -> bytes:
    """Decrypts a media file downloaded from the CDN.
    The file is AES-256-CBC ciphertext followed by a 10 bytes truncated HMAC.
    The HMAC is dropped, not verified."""
    encrypted = ciphertext[:-C.MEDIA_MAC_SIZE]
    if len(encrypted) == 0 or len(encrypted) % AES.block_size != 0:
        raise ValueError("Encrypted media size ({}) is not a multiple of {}".format(len(encrypted),
                                                                                 AES.block_size))
    cipher = AES.new(keys.enc_key, AES.MODE_CBC, keys.iv)
    return unpad(cipher.decrypt(encrypted), AES.block_size)
