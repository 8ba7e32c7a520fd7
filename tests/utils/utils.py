import base64
import hmac
import json
import os
import struct
import sys
from hashlib import sha256
from subprocess import Popen, STDOUT, PIPE

from Cryptodome.Cipher import AES
from Cryptodome.Hash import SHA256
from Cryptodome.Protocol.KDF import HKDF
from Cryptodome.Util.Padding import pad


SRC = os.path.join(os.path.dirname(os.path.abspath(__file__)), os.pardir, os.pardir, "src")


def Propen(command, env=None):
    if isinstance(command, str):
        command = command.split()
    # split the command string in a list
    p = Popen(command, stdout=PIPE, stderr=STDOUT, text=True, env=env)
    return p.communicate()[0], p.returncode


def Pymodule(module: str, *args):
    """Runs one of our scripts with the current interpreter, installed or not."""
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(p for p in (SRC, env.get("PYTHONPATH")) if p)
    return Propen([sys.executable, "-m", module, *[str(a) for a in args]], env=env)


def rmifound(file: str):
    if not os.path.exists(file):
        return
    if not os.path.isfile(file):
        return
    try:
        os.remove(file)
    except FileNotFoundError:
        pass


# Protobuf wire format, written by hand

def varint(number: int) -> bytes:
    out = b''
    while True:
        byte = number & 0x7f
        number >>= 7
        if number:
            out += bytes([byte | 0x80])
        else:
            return out + bytes([byte])


def tag(field: int, wire_type: int) -> bytes:
    return varint(field << 3 | wire_type)


def length_delimited(field: int, payload) -> bytes:
    if isinstance(payload, str):
        payload = payload.encode('utf-8')
    return tag(field, 2) + varint(len(payload)) + payload


def fixed64(field: int, fmt: str, value) -> bytes:
    return tag(field, 1) + struct.pack(fmt, value)


def fixed32(field: int, fmt: str, value) -> bytes:
    return tag(field, 5) + struct.pack(fmt, value)


def message_row(body: str, quoted: str = None) -> bytes:
    row = length_delimited(1, length_delimited(1, body))
    if quoted is not None:
        row += length_delimited(2, length_delimited(1, quoted))
    return row


# Encryption, the way the browser and the CDN do it

ROW_KEY = bytes.fromhex('6730a595a1484d0c39c101dc0ac82ec5e401bb6f0e1b8ee2dc104a6b3687f017')
WRONG_KEY = bytes.fromhex('3a146d9bbd8b6311d962c71619c0c2cce3ce694ea4a0f3f600e271380e1226c6')


def encrypt_gcm(key: bytes, iv: bytes, plaintext: bytes) -> bytes:
    cipher = AES.new(key, AES.MODE_GCM, nonce=iv)
    encrypted, authentication_tag = cipher.encrypt_and_digest(plaintext)
    return encrypted + authentication_tag


def encrypt_cbc(key: bytes, iv: bytes, plaintext: bytes) -> bytes:
    return AES.new(key, AES.MODE_CBC, iv).encrypt(pad(plaintext, AES.block_size))


def chat_record(msg_id: str, body: str, iv: bytes, key: bytes = ROW_KEY, t: int = None, b64: bool = False) -> dict:
    data = encrypt_gcm(key, iv, message_row(body))
    record = {
        "id": msg_id,
        "type": "chat",
        "msgRowOpaqueData": {"iv": iv, "_data": data},
    }
    if b64:
        record["msgRowOpaqueData"] = {"iv": base64.b64encode(iv).decode(), "_data": base64.b64encode(data).decode()}
    if t is not None:
        record["t"] = t
    return record


def media_keys(media_key: bytes, info: bytes) -> bytes:
    """Independent HKDF implementation, for cross-checking."""
    return HKDF(media_key, 112, None, SHA256, context=info)


def encrypt_media(media_key: bytes, info: bytes, plaintext: bytes) -> bytes:
    expanded = media_keys(media_key, info)
    iv, enc_key, mac_key = expanded[:16], expanded[16:48], expanded[48:80]
    encrypted = encrypt_cbc(enc_key, iv, plaintext)
    mac = hmac.new(mac_key, iv + encrypted, digestmod=sha256).digest()[:10]
    return encrypted + mac


def write_store(directory, store: str, records: list):
    with open(os.path.join(directory, "{}.json".format(store)), 'w', encoding='utf-8') as f:
        json.dump(records, f)
