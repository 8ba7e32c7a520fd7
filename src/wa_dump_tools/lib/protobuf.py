"""
A minimal protobuf reader.

Messages are decoded against a hand-written field specification instead of
generated classes. Only the wire types found in WhatsApp message rows are
supported: fixed64 (1), length-delimited (2) and fixed32 (5). Bare varint
fields (wire type 0) never showed up, so they are rejected like any other
unknown structure.
"""
from __future__ import annotations

import enum
import logging
import struct
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Union

from wa_dump_tools.lib.constants import C
from wa_dump_tools.lib.errors import CursorMismatchError, DecodeError, TruncatedMessageError, \
    UnimplementedWireTypeError, UnspecifiedFieldError, VarintWidthError, WireTypeMismatchError

log = logging.getLogger(__name__)


class Scalar(enum.Enum):
    STRING = "string"
    BYTES = "bytes"
    DOUBLE = "double"
    FLOAT = "float"
    INT32 = "int32"
    UINT32 = "uint32"
    INT64 = "int64"
    UINT64 = "uint64"
    BOOL = "bool"


@dataclass(frozen=True)
class Nested:
    spec: Mapping[int, Field]


@dataclass(frozen=True)
class Field:
    name: str
    type: Union[Scalar, Nested]


def field_spec(fields: Mapping[int, Field]) -> Mapping[int, Field]:
    """Freezes a field specification."""
    return MappingProxyType(dict(fields))


class DecodedRecord(dict):
    """A decoded message. Read-only, fields can also be read as attributes.
    Attribute access only works for field names that are not dict methods:
    a field called "items" or "get" must be read as record["items"]."""

    def __getattr__(self, name):
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name) from None

    def _readonly(self, *args, **kwargs):
        raise TypeError("DecodedRecord is read-only")

    __setitem__ = _readonly
    __delitem__ = _readonly
    __setattr__ = _readonly
    clear = _readonly
    pop = _readonly
    popitem = _readonly
    setdefault = _readonly
    update = _readonly


class DecodeCursor:
    """Read position inside one (sub)message. Never outlives the decode call that created it."""

    def __init__(self, data: memoryview):
        self.data = data
        self.offset = 0
        self.length = len(data)

    def read(self, n: int) -> memoryview:
        if self.offset + n > self.length:
            raise TruncatedMessageError(self.offset + n, self.length)
        chunk = self.data[self.offset:self.offset + n]
        self.offset += n
        return chunk


# (wire type, scalar) -> struct format
_FIXED_FORMATS = {
    (1, Scalar.DOUBLE): '<d',
    (1, Scalar.INT64): '<q',
    (1, Scalar.UINT64): '<Q',
    (5, Scalar.FLOAT): '<f',
    (5, Scalar.INT32): '<i',
    (5, Scalar.UINT32): '<I',
}
_FIXED_SIZES = {1: 8, 5: 4}


def decode_varint(cursor: DecodeCursor) -> int:
    """Little-endian base 128, at most 4 bytes so that the result fits in 32 bits."""
    number = 0
    parsed = 0
    while True:
        if parsed >= C.MAX_VARINT_BYTES:
            raise VarintWidthError("trying to parse varint wider than {} bytes".format(C.MAX_VARINT_BYTES))
        if cursor.offset >= cursor.length:
            raise TruncatedMessageError(cursor.offset + 1, cursor.length, "varint")
        byte = cursor.data[cursor.offset]
        cursor.offset += 1
        number |= (byte & 0x7f) << (parsed * 7)
        parsed += 1
        if not byte & 0x80:
            return number


def _decode_with_cursor(spec: Mapping[int, Field], cursor: DecodeCursor) -> DecodedRecord:
    result = {}
    while cursor.offset < cursor.length:
        tag = decode_varint(cursor)
        number = tag >> 3
        wire_type = tag & 0x7
        field = spec.get(number)
        if field is None:
            raise UnspecifiedFieldError(number)

        if wire_type in _FIXED_SIZES:
            fmt = _FIXED_FORMATS.get((wire_type, field.type))
            if fmt is None:
                raise WireTypeMismatchError("bad type for {}-bit data: {}".format(
                    _FIXED_SIZES[wire_type] * 8, _type_name(field.type)))
            value = struct.unpack(fmt, cursor.read(_FIXED_SIZES[wire_type]))[0]
        elif wire_type == 2:
            length = decode_varint(cursor)
            chunk = cursor.read(length)
            if isinstance(field.type, Nested):
                # The submessage gets its own cursor, so it cannot read past its length
                value = _decode_with_cursor(field.type.spec, DecodeCursor(chunk))
            elif field.type is Scalar.STRING:
                try:
                    value = bytes(chunk).decode('utf-8')
                except UnicodeDecodeError as e:
                    raise DecodeError("field {} is not valid UTF-8: {}".format(field.name, e)) from e
            elif field.type is Scalar.BYTES:
                value = bytes(chunk)
            else:
                raise WireTypeMismatchError("bad field type for length-delimited data: {}".format(
                    _type_name(field.type)))
        else:
            raise UnimplementedWireTypeError(wire_type)
        result[field.name] = value

    if cursor.offset != cursor.length:
        raise CursorMismatchError(cursor.offset, cursor.length)
    return DecodedRecord(result)


def _type_name(field_type) -> str:
    if isinstance(field_type, Nested):
        return "message"
    return field_type.value


def decode(spec: Mapping[int, Field], buffer: bytes) -> DecodedRecord:
    """Decodes buffer against spec. Raises DecodeError on anything the spec does not describe."""
    return _decode_with_cursor(spec, DecodeCursor(memoryview(buffer)))
