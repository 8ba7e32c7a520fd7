"""
Exceptions raised by the dumper.
"""
from __future__ import annotations

from google.protobuf import message


class DecodeError(message.DecodeError):
    """A message row does not match its field specification."""


class VarintWidthError(DecodeError):
    pass


class UnspecifiedFieldError(DecodeError):
    def __init__(self, field: int):
        super().__init__("non-specced field {}".format(field))
        self.field = field


class WireTypeMismatchError(DecodeError):
    pass


class UnimplementedWireTypeError(DecodeError):
    def __init__(self, wire_type: int):
        super().__init__("unimplemented wire type {}".format(wire_type))
        self.wire_type = wire_type


class CursorMismatchError(DecodeError):
    def __init__(self, cursor: int, length: int):
        super().__init__("mismatching cursor {} and length {}".format(cursor, length))
        self.cursor = cursor
        self.length = length


class TruncatedMessageError(CursorMismatchError):
    """A field or varint runs past the end of its message."""

    def __init__(self, cursor: int, length: int, what: str = "field"):
        DecodeError.__init__(self, "EOF while parsing {}: cursor {} past length {}".format(what, cursor, length))
        self.cursor = cursor
        self.length = length


class UnsupportedTypeError(ValueError):
    """The media type has no known key derivation info string."""

    def __init__(self, media_type):
        super().__init__("Bad media type {}".format(media_type))
        self.media_type = media_type


class UnsupportedAlgorithmError(ValueError):
    pass


class KeyDiscoveryError(RuntimeError):
    pass


class KeyNotDiscoveredError(RuntimeError):
    pass


class MediaDownloadError(Exception):
    def __init__(self, url: str, reason: str, status: int | None = None):
        super().__init__("Could not download {}: {}".format(url, reason))
        self.url = url
        self.status = status


class ArchiveError(ValueError):
    """The archive is structurally wrong. ``document`` names the offending file, if any."""

    def __init__(self, message: str, document: str | None = None):
        super().__init__(message)
        self.document = document


class ArchiveNameTooLongError(ArchiveError):
    def __init__(self, name: str, size: int):
        super().__init__("Tar name too long ({})".format(size), document=name)


class MissingDocumentError(ArchiveError):
    def __init__(self, document: str):
        super().__init__("Could not find file {} in tar archive.".format(document), document)


class DocumentEncodingError(ArchiveError):
    def __init__(self, document: str):
        super().__init__("Could not decode UTF-8 contents of file {}".format(document), document)


class DocumentJSONError(ArchiveError):
    def __init__(self, document: str):
        super().__init__("Could not decode JSON in file {}".format(document), document)
