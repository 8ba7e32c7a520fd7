"""
Decrypts all the messages (downloading and decrypting the media if
requested), collects the other useful object stores and packs everything
in a tar archive.
"""
from __future__ import annotations

import base64
import logging
from typing import NamedTuple

from wa_dump_tools.lib.archive import write_archive
from wa_dump_tools.lib.config import DumpConfig
from wa_dump_tools.lib.constants import C
from wa_dump_tools.lib.context import DecryptionContext, decrypt_row
from wa_dump_tools.lib.errors import DecodeError
from wa_dump_tools.lib.key.mediakey import is_media_message
from wa_dump_tools.lib.media.acquire import acquire_media
from wa_dump_tools.lib.media.cache import MediaCache
from wa_dump_tools.lib.media.download import MediaDownloader
from wa_dump_tools.lib.record import OPAQUE_DATA_FIELD, OpaqueData, record_id
from wa_dump_tools.lib.source import RecordSource
from wa_dump_tools.lib.stats import Stats
from wa_dump_tools.proto.message_row import decode_message_row

log = logging.getLogger(__name__)


class DumpResult(NamedTuple):
    archive: bytes
    messages: list
    media_blobs: dict
    stats: Stats


class Dumper:
    def __init__(self, config: DumpConfig, source: RecordSource, cache: MediaCache, downloader: MediaDownloader,
                 context: DecryptionContext):
        self.config = config
        self.source = source
        self.cache = cache
        self.downloader = downloader
        self.context = context
        self.stats = Stats()

    async def decrypt_message(self, messages: list, media_blobs: dict, encoded: dict):
        """Decrypts and decodes a single message in place, then appends it to messages."""
        opaque = OpaqueData.from_record(encoded)
        if opaque is not None:
            msg_id = record_id(encoded)
            msg_bytes = decrypt_row(self.context, opaque)
            del encoded[OPAQUE_DATA_FIELD]
            encoded["msgRowData"] = base64.b64encode(msg_bytes).decode('ascii')
            msg_type = encoded.get("type")
            if msg_type == "chat":
                try:
                    encoded["msgRow"] = decode_message_row(msg_bytes)
                except DecodeError as e:
                    log.error("Could not decode message {}: {}".format(msg_id, e))
                    if not self.config.skip_undecodable:
                        raise
                    self.stats.undecodable.add(msg_id)
            elif self.config.dump_media and is_media_message(msg_type):
                try:
                    media_bytes = await acquire_media(self.config, self.cache, self.downloader, self.stats, encoded)
                except ValueError as e:
                    log.error("Could not download and decrypt media for message {}: {}".format(msg_id, e))
                    raise
                if media_bytes is not None:
                    filehash = encoded.get("filehash")
                    if filehash:
                        media_blobs[filehash] = media_bytes
                    else:
                        log.warning("Media of message {} has no filehash, not saved".format(msg_id))
            else:
                self.stats.unknown_type.add(msg_id)
        messages.append(encoded)

    async def dump_messages(self) -> tuple[list, dict]:
        """Fetches and decrypts all messages"""
        log.info("Fetching messages")
        records = await self.source.get_all(C.MESSAGE_STORE)
        log.info("Fetched {} messages, decrypting".format(len(records)))
        messages = []
        media_blobs = {}
        for record in records:
            self.stats.seen_types.add(record.get("type"))
            await self.decrypt_message(messages, media_blobs, record)
        self.stats.log_summary(len(messages))
        return messages, media_blobs

    async def dump(self) -> DumpResult:
        messages, media_blobs = await self.dump_messages()
        stores = {}
        for store in (C.CHAT_STORE, C.CONTACT_STORE, C.GROUP_STORE):
            log.info("Fetching object store {}".format(store))
            stores[store] = await self.source.get_all(store)
        archive = write_archive(messages, stores[C.CHAT_STORE], stores[C.CONTACT_STORE], stores[C.GROUP_STORE],
                                media_blobs)
        return DumpResult(archive, messages, media_blobs, self.stats)


async def dump_whatsapp(config: DumpConfig, source: RecordSource, cache: MediaCache, downloader: MediaDownloader,
                        context: DecryptionContext) -> DumpResult:
    return await Dumper(config, source, cache, downloader, context).dump()
