from __future__ import annotations

import logging

from wa_dump_tools.lib.config import DumpConfig
from wa_dump_tools.lib.errors import MediaDownloadError
from wa_dump_tools.lib.key.mediakey import derive_media_keys
from wa_dump_tools.lib.media.cache import MediaCache
from wa_dump_tools.lib.media.download import MediaDownloader
from wa_dump_tools.lib.media.media import decrypt_media_blob
from wa_dump_tools.lib.record import record_id
from wa_dump_tools.lib.stats import Stats
from wa_dump_tools.lib.utils import media_cache_key

log = logging.getLogger(__name__)


async def acquire_media(config: DumpConfig, cache: MediaCache, downloader: MediaDownloader, stats: Stats,
                        msg: dict) -> bytes | None:
    """Returns the decrypted media of a message, or None if it is not available.
    Looks in the cache first to minimize downloads. Failures are counted in stats, never raised."""
    msg_id = record_id(msg)
    if not msg.get("mediaKey"):
        stats.no_media_key.add(msg_id)
        return None
    filehash = msg.get("filehash")
    if not filehash:
        stats.no_file_hash.add(msg_id)

    cache_key = media_cache_key(filehash)
    cached_bytes = await cache.get(cache_key)
    if cached_bytes is not None:
        stats.cached_media_downloads.add(msg_id)
        return cached_bytes
    elif config.dump_only_cached_media:
        return None

    media_keys = derive_media_keys(msg.get("type"), msg["mediaKey"])
    try:
        encrypted = await downloader.fetch(msg.get("directPath"))
    except MediaDownloadError as e:
        log.debug("Message {}: {}".format(msg_id, e))
        stats.failed_media_download.add(msg_id)
        return None
    stats.successful_media_downloads.add(msg_id)
    cleartext = decrypt_media_blob(media_keys, encrypted)
    if config.save_downloaded_media_to_cache:
        await cache.put(cache_key, cleartext)
    return cleartext
