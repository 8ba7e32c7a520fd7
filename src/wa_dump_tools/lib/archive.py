"""
Layout of whatsapp.tar.

The archive holds four JSON documents (messages, chats, contacts and group
metadata) and a ``media`` directory with one decrypted file per file hash.
"""
from __future__ import annotations

import json
import logging
from functools import cmp_to_key

from wa_dump_tools.lib.constants import C
from wa_dump_tools.lib.errors import DocumentEncodingError, DocumentJSONError, MissingDocumentError
from wa_dump_tools.lib.tar import untar, write_tar
from wa_dump_tools.lib.utils import json_default, media_hash, media_name

log = logging.getLogger(__name__)


def json_document(records: list) -> bytes:
    return json.dumps(records, default=json_default, ensure_ascii=False, separators=(',', ':')).encode('utf-8')


def archive_entries(messages: list, chats: list, contacts: list, groups: list,
                    media_blobs: dict[str, bytes]) -> list[tuple[str, bytes]]:
    entries = [
        (C.MESSAGE_DOCUMENT, json_document(messages)),
        (C.CHAT_DOCUMENT, json_document(chats)),
        (C.CONTACT_DOCUMENT, json_document(contacts)),
        (C.GROUP_DOCUMENT, json_document(groups)),
    ]
    for filehash, blob in media_blobs.items():
        entries.append(("{}/{}".format(C.MEDIA_DIRECTORY, media_name(filehash)), blob))
    return entries


def write_archive(messages: list, chats: list, contacts: list, groups: list, media_blobs: dict[str, bytes]) -> bytes:
    return write_tar(archive_entries(messages, chats, contacts, groups, media_blobs))


def compare_times(t1, t2) -> int:
    """Newest first, records without a timestamp last."""
    if t1 == t2:
        return 0
    if t1 is None:
        return 1
    if t2 is None:
        return -1
    return (t2 > t1) - (t2 < t1)


def sort_chats(chats: list) -> list:
    return sorted(chats, key=cmp_to_key(lambda c1, c2: compare_times(c1.get("t"), c2.get("t"))))


def sort_messages(messages: list) -> list:
    # Undated messages go last, like undated chats. An older viewer put them first;
    # readers of the archive expect [10, 30, 20, None] -> [30, 20, 10, None].
    return sorted(messages, key=cmp_to_key(lambda m1, m2: compare_times(m1.get("t"), m2.get("t"))))


def extract_whatsapp_data(files: dict) -> dict:
    """Turns an unpacked archive into the data set: the four documents, parsed and sorted,
    and "media", mapping each file hash to its decrypted bytes."""
    data = {}
    for name in C.DOCUMENTS:
        content = files.get(name)
        if content is None or isinstance(content, dict):
            raise MissingDocumentError(name)
        try:
            text = content.decode('utf-8')
        except UnicodeDecodeError as e:
            log.error("Could not decode utf-8 in file {}: {}".format(name, e))
            raise DocumentEncodingError(name) from e
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            log.error("Could not decode json in file {}: {}".format(name, e))
            raise DocumentJSONError(name) from e
        if not isinstance(document, list):
            log.error("File {} is not a JSON array".format(name))
            raise DocumentJSONError(name)
        data[name] = document

    media = {}
    media_directory = files.get(C.MEDIA_DIRECTORY, {})
    if isinstance(media_directory, dict):
        for name, blob in media_directory.items():
            media[media_hash(name)] = blob
    data["media"] = media

    data[C.CHAT_DOCUMENT] = sort_chats(data[C.CHAT_DOCUMENT])
    data[C.MESSAGE_DOCUMENT] = sort_messages(data[C.MESSAGE_DOCUMENT])
    return data


def read_archive(tar: bytes) -> dict:
    return extract_whatsapp_data(untar(tar))
