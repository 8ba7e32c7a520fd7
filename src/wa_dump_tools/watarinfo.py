#!/usr/bin/env python
"""
This script prints info on a whatsapp.tar archive.
"""

from __future__ import annotations

import argparse
import logging

from wa_dump_tools.lib.archive import extract_whatsapp_data
from wa_dump_tools.lib.constants import C
from wa_dump_tools.lib.errors import ArchiveError
from wa_dump_tools.lib.logformat import setup_logging
from wa_dump_tools.lib.tar import read_tar, untar

__license__ = 'GPLv3'
__status__ = 'Beta'

log = logging.getLogger(__name__)


def parsecmdline() -> argparse.Namespace:
    """Sets up the argument parser"""
    parser = argparse.ArgumentParser(description='Prints info on a WhatsApp Web dump')
    parser.add_argument('archive', nargs='?', type=str, default=C.DEFAULT_OUTPUT,
                        help='The archive created by wadump. Default: {}'.format(C.DEFAULT_OUTPUT))
    parser.add_argument('-l', '--list', action='store_true', help='List the files in the archive')
    parser.add_argument('-c', '--chats', type=int, default=5, help='How many recent chats to show. Default: 5')
    parser.add_argument('-v', '--verbose', action='store_true', help='Prints all messages')
    return parser.parse_args()


def main():
    args = parsecmdline()

    setup_logging(log, args.verbose)

    try:
        with open(args.archive, 'rb') as f:
            tar = f.read()
    except OSError as e:
        log.error("Could not read {}: {}".format(args.archive, e))
        exit(1)

    try:
        if args.list:
            for name, content in read_tar(tar):
                print("{:>12} {}".format(len(content), name))
        data = extract_whatsapp_data(untar(tar))
    except ArchiveError as e:
        log.error("Error: {}".format(e))
        exit(1)

    for name in C.DOCUMENTS:
        log.info("{}: {} records".format(name, len(data[name])))
    log.info("media: {} files ({} bytes)".format(len(data["media"]), sum(len(b) for b in data["media"].values())))

    for chat in data[C.CHAT_DOCUMENT][:args.chats]:
        print("{} {}".format(chat.get("t", "-"), chat.get("id")))


if __name__ == "__main__":
    main()
