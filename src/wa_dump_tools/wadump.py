#!/usr/bin/env python
"""
This script dumps WhatsApp Web's messages, chats, contacts and groups
(and optionally media) into a tar archive.
"""

from __future__ import annotations

import argparse
import asyncio
import base64
import json
import logging
from pathlib import Path

from wa_dump_tools.lib.cipher import Algorithm, HostCrypto
from wa_dump_tools.lib.config import DumpConfig
from wa_dump_tools.lib.constants import C
from wa_dump_tools.lib.context import ContextHolder, DecryptionContext, default_holder
from wa_dump_tools.lib.discovery import KeyDiscovery, MethodInterceptor
from wa_dump_tools.lib.dump import DumpResult, dump_whatsapp
from wa_dump_tools.lib.errors import ArchiveError, DecodeError, KeyDiscoveryError
from wa_dump_tools.lib.key.rowkey import RowKey
from wa_dump_tools.lib.logformat import setup_logging
from wa_dump_tools.lib.media.cache import DirectoryMediaCache, MemoryMediaCache
from wa_dump_tools.lib.media.download import MediaDownloader
from wa_dump_tools.lib.source import JsonRecordSource, RecordSource

__license__ = 'GPLv3'
__status__ = 'Beta'

log = logging.getLogger(__name__)


def parsecmdline() -> argparse.Namespace:
    """Sets up the argument parser"""
    parser = argparse.ArgumentParser(description='Decrypts WhatsApp Web messages and packs them, with chats, '
                                                 'contacts and groups, in a tar archive')
    parser.add_argument('source', nargs='?', type=str, default=C.DEFAULT_SOURCE,
                        help='Directory with the object stores dumped as JSON arrays '
                             '(message.json, chat.json, contact.json, group-metadata.json). '
                             'Default: {}'.format(C.DEFAULT_SOURCE))
    parser.add_argument('output', nargs='?', type=str, default=C.DEFAULT_OUTPUT,
                        help='The output archive. Default: {}'.format(C.DEFAULT_OUTPUT))
    parser.add_argument('-k', '--key', type=str,
                        help='The hex encoded message key, if already known. Skips key discovery.')
    parser.add_argument('-a', '--algorithm', type=str, default=C.DEFAULT_ROW_ALGORITHM, choices=Algorithm.SUPPORTED,
                        help='The algorithm of the message key given with --key. '
                             'Default: {}'.format(C.DEFAULT_ROW_ALGORITHM))
    parser.add_argument('-o', '--observed', type=str,
                        help='JSON lines file of decrypt calls captured in the browser, '
                             'used to discover the message key')
    parser.add_argument('-t', '--timeout', type=float, default=10.0,
                        help='Seconds to wait for key discovery. Default: 10')
    parser.add_argument('-m', '--dump-media', action='store_true',
                        help='Save media on top of text messages. Default: only cached media')
    parser.add_argument('-d', '--download-media', action='store_true',
                        help='Download the media which is not cached. Implies -m')
    parser.add_argument('--no-cache-save', action='store_true',
                        help='Do not cache downloaded media')
    parser.add_argument('--cache-dir', type=str, default=C.DEFAULT_CACHE_DIR,
                        help='The media cache directory. Default: {}'.format(C.DEFAULT_CACHE_DIR))
    parser.add_argument('--skip-undecodable', action='store_true',
                        help='Skip messages that cannot be decoded instead of stopping')
    parser.add_argument('-y', '--yes', action='store_true', help='Overwrite the output file if it exists.')
    parser.add_argument('-v', '--verbose', action='store_true', help='Prints all messages')

    return parser.parse_args()


async def replay_observed(host: HostCrypto, observed: Path):
    """Feeds captured decrypt calls to the host primitive, as the browser would make them.
    Each line is {"algorithm": {"name": ..., "iv": hex}, "key": hex, "data": base64}."""
    with open(observed, 'r', encoding='utf-8') as f:
        for n, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                call = json.loads(line)
                algorithm = Algorithm.from_dict(call["algorithm"])
                key = RowKey.from_hex(call["key"])
                data = base64.b64decode(call["data"])
            except (ValueError, KeyError, TypeError) as e:
                log.warning("Skipping line {} of {}: {}".format(n, observed, e))
                continue
            try:
                await host.decrypt(algorithm, key, data)
            except ValueError as e:
                log.debug("Observed decrypt call {} failed: {}".format(n, e))
            # let the probes run
            await asyncio.sleep(0)


async def obtain_context(args: argparse.Namespace, source: RecordSource, holder: ContextHolder) -> DecryptionContext:
    if args.key is not None:
        holder.set_once(DecryptionContext(Algorithm(args.algorithm), RowKey.from_hex(args.key)))
        return holder.get()
    if args.observed is None:
        raise KeyDiscoveryError("The message key is unknown, use --key or --observed")

    host = HostCrypto()
    interceptor = MethodInterceptor(host)
    discovery = asyncio.ensure_future(KeyDiscovery(holder, interceptor).discover(source, timeout=args.timeout))
    # The capture can only be replayed once the primitive is intercepted
    while not interceptor.installed and not discovery.done():
        await asyncio.sleep(0)
    if interceptor.installed:
        await replay_observed(host, Path(args.observed))
    return await discovery


async def run(args: argparse.Namespace) -> DumpResult:
    source = JsonRecordSource(Path(args.source))
    context = await obtain_context(args, source, default_holder())

    config = DumpConfig(dump_media=args.dump_media or args.download_media,
                        dump_only_cached_media=not args.download_media,
                        save_downloaded_media_to_cache=not args.no_cache_save,
                        skip_undecodable=args.skip_undecodable)
    cache = DirectoryMediaCache(Path(args.cache_dir)) if config.dump_media else MemoryMediaCache()
    async with MediaDownloader() as downloader:
        return await dump_whatsapp(config, source, cache, downloader, context)


def main():
    args = parsecmdline()

    setup_logging(log, args.verbose)

    output_file = Path(args.output)
    if output_file.exists() and not args.yes:
        log.fatal("The output file already exists.")
        exit(1)

    try:
        result = asyncio.run(run(args))
    except KeyDiscoveryError as e:
        log.critical("Key discovery failed: {}".format(e))
        exit(1)
    except DecodeError as e:
        log.critical("Message decoding failed: {}".format(e))
        exit(1)
    except ArchiveError as e:
        log.critical("Could not create the archive: {}".format(e))
        exit(1)
    except (ValueError, OSError) as e:
        log.critical("Dump failed: {}".format(e))
        exit(1)

    with open(output_file, 'wb') as f:
        f.write(result.archive)

    log.info("Archive \"{}\" created.".format(args.output))


if __name__ == "__main__":
    main()
