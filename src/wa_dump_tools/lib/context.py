"""
The parameters needed to decrypt message rows.

The browser never exposes them: they are discovered once (see discovery.py)
and then shared by every row decryption of the process.
"""
from __future__ import annotations

import enum
import logging
import threading
from typing import NamedTuple

from wa_dump_tools.lib.cipher import Algorithm, decrypt
from wa_dump_tools.lib.errors import KeyNotDiscoveredError
from wa_dump_tools.lib.key.rowkey import RowKey
from wa_dump_tools.lib.record import OpaqueData

log = logging.getLogger(__name__)


class DecryptionContext(NamedTuple):
    algorithm: Algorithm
    key: RowKey


class DiscoveryState(enum.Enum):
    UNKNOWN = "unknown"
    PROBING = "probing"
    DISCOVERED = "discovered"


class ContextHolder:
    """Holds the DecryptionContext. It is set at most once and is read-only afterwards."""

    def __init__(self):
        self._lock = threading.Lock()
        self._context: DecryptionContext | None = None
        self._state = DiscoveryState.UNKNOWN

    @property
    def state(self) -> DiscoveryState:
        return self._state

    @property
    def discovered(self) -> bool:
        return self._state is DiscoveryState.DISCOVERED

    def start_probing(self):
        with self._lock:
            if self._state is DiscoveryState.UNKNOWN:
                self._state = DiscoveryState.PROBING

    def set_once(self, context: DecryptionContext) -> bool:
        """Stores the context unless another one got there first. Returns True if this call won."""
        with self._lock:
            if self._context is not None:
                return False
            self._context = context
            self._state = DiscoveryState.DISCOVERED
        log.debug("Decryption context stored: {} {}".format(context.algorithm, context.key))
        return True

    def get(self) -> DecryptionContext:
        if self._context is None:
            raise KeyNotDiscoveredError("The message decryption key has not been discovered yet")
        return self._context


def decrypt_row(context: DecryptionContext, opaque: OpaqueData) -> bytes:
    """Decrypts a message row with the shared algorithm and key, and the row's own IV."""
    return decrypt(context.algorithm.with_iv(opaque.iv), context.key, opaque.data)


_default_holder = ContextHolder()


def default_holder() -> ContextHolder:
    """The holder shared by the whole process."""
    return _default_holder
