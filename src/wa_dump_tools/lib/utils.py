import base64
import hmac
import math
from hashlib import sha256
from urllib.parse import quote

from wa_dump_tools.lib.constants import C


def encryptionloop(*, first_iteration_data: bytes, privateseed: bytes = b'\x00' * 32, message: bytes,
                   output_bytes: int) -> bytes:
    """HKDF-SHA256 (RFC 5869).
    first_iteration_data is the input key material, privateseed the salt and message the info string."""
    if output_bytes > 255 * C.HKDF_HASH_LEN:
        raise ValueError("Cannot expand to more than {} bytes".format(255 * C.HKDF_HASH_LEN))
    if not privateseed:
        privateseed = b'\x00' * C.HKDF_HASH_LEN
    # Extract: the salt keys the HMAC of the input key material
    privatekey = hmac.new(privateseed, msg=first_iteration_data, digestmod=sha256).digest()

    # Expand: T(i) = HMAC(PRK, T(i-1) || info || i)
    data = b''
    output = b''
    permutations = int(math.ceil(float(output_bytes) / float(C.HKDF_HASH_LEN)))
    i = 1
    while i < permutations + 1:
        hasher = hmac.new(privatekey, msg=data, digestmod=sha256)
        if message is not None:
            hasher.update(message)
        hasher.update(i.to_bytes(1, byteorder='big'))
        data = hasher.digest()
        output += data
        i += 1
    return output[:output_bytes]


def b64decode_field(value) -> bytes:
    """Record fields are raw bytes when they come from the browser, base64 strings when they come from a JSON dump."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return base64.b64decode(value)
    raise TypeError("Expected bytes or a base64 string, got {}".format(type(value).__name__))


def json_default(o):
    """json.dumps hook: binary values are stored as base64."""
    if isinstance(o, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(o)).decode('ascii')
    raise TypeError("Object of type {} is not JSON serializable".format(type(o).__name__))


def media_name(filehash: str) -> str:
    """Turns a base64 file hash into a file name (URL-safe alphabet, no padding)."""
    return filehash.replace("/", "_").replace("+", "-").rstrip("=")


def media_hash(name: str) -> str:
    """Inverse of media_name."""
    filehash = name.replace("_", "/").replace("-", "+")
    return filehash + "=" * (-len(filehash) % 4)


def media_cache_key(filehash) -> str:
    """The key the browser uses for a media blob in its LRU cache."""
    # Same escaping as encodeURIComponent
    return C.MEDIA_CACHE_URL + quote("{}_{}".format(C.MEDIA_CACHE_NAME, filehash), safe="!*'()")
