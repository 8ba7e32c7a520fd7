from __future__ import annotations

import logging
from dataclasses import dataclass, field

log = logging.getLogger(__name__)


@dataclass
class Stats:
    """What happened to each message. Only used for the final report."""
    unknown_type: set = field(default_factory=set)
    no_media_key: set = field(default_factory=set)
    no_file_hash: set = field(default_factory=set)
    failed_media_download: set = field(default_factory=set)
    successful_media_downloads: set = field(default_factory=set)
    cached_media_downloads: set = field(default_factory=set)
    # Only filled when undecodable rows are skipped instead of aborting
    undecodable: set = field(default_factory=set)
    seen_types: set = field(default_factory=set)

    def log_summary(self, messages: int):
        log.info("{} messages decoded".format(messages))
        log.info("{} messages skipped because of unknown type".format(len(self.unknown_type)))
        log.info("{} messages skipped because they had no mediaKey".format(len(self.no_media_key)))
        log.info("{} media messages without a filehash".format(len(self.no_file_hash)))
        log.info("{} failed media downloads".format(len(self.failed_media_download)))
        log.info("{} successful media downloads".format(len(self.successful_media_downloads)))
        log.info("{} cached media downloads".format(len(self.cached_media_downloads)))
        if self.undecodable:
            log.warning("{} messages could not be decoded and were skipped".format(len(self.undecodable)))
        log.debug("Seen message types: {}".format(sorted(str(t) for t in self.seen_types)))
