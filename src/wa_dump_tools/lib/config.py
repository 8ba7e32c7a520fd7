from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DumpConfig:
    # Save media on top of text messages
    dump_media: bool = False
    # Dump only media which is already cached locally. Only relevant if dump_media is set.
    dump_only_cached_media: bool = True
    # Cache newly downloaded media, so that it won't be downloaded again next time.
    # Only relevant if dump_only_cached_media is not set.
    save_downloaded_media_to_cache: bool = True
    # Log and skip message rows that cannot be decoded instead of aborting
    skip_undecodable: bool = False
