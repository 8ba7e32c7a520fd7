"""
Finds out how the host decrypts message rows.

The host keeps the algorithm and key of msgRowOpaqueData to itself. What we
can do is watch its decrypt primitive: every time it decrypts something, we
try the very same algorithm and key on a message row we already have. If
that decrypts to a valid message row, we have found the parameters.
"""
from __future__ import annotations

import abc
import asyncio
import logging
from typing import Callable

from wa_dump_tools.lib.cipher import Algorithm
from wa_dump_tools.lib.constants import C
from wa_dump_tools.lib.context import ContextHolder, DecryptionContext
from wa_dump_tools.lib.errors import DecodeError, KeyDiscoveryError
from wa_dump_tools.lib.key.rowkey import RowKey
from wa_dump_tools.lib.record import OpaqueData, is_chat_row
from wa_dump_tools.lib.source import RecordSource
from wa_dump_tools.proto.message_row import decode_message_row

log = logging.getLogger(__name__)

DecryptCallback = Callable[[Algorithm, RowKey], None]


class DecryptObserver(abc.ABC):
    """Lets the dumper watch the host's decrypt operations."""

    @abc.abstractmethod
    def install(self, callback: DecryptCallback):
        """Calls callback(algorithm, key) on every host decrypt from now on."""
        pass

    @abc.abstractmethod
    def remove(self):
        """Stops observing. Safe to call more than once."""
        pass

    @abc.abstractmethod
    async def original_decrypt(self, algorithm: Algorithm, key: RowKey, data: bytes) -> bytes:
        """The host's decrypt primitive, without observation."""
        pass


class MethodInterceptor(DecryptObserver):
    """Observes by replacing an async ``decrypt`` attribute of the host object with a wrapper.
    The original is put back exactly once, and the interceptor cannot be installed again afterwards."""

    def __init__(self, target, attribute: str = "decrypt"):
        self.target = target
        self.attribute = attribute
        self._original = getattr(target, attribute)
        self._own_attribute = attribute in getattr(target, "__dict__", {})
        self._installed = False
        self._used = False

    @property
    def installed(self) -> bool:
        return self._installed

    def install(self, callback: DecryptCallback):
        if self._used:
            raise RuntimeError("The decrypt primitive has already been intercepted once")
        self._used = True
        original = self._original

        async def intercepted(algorithm, key, data):
            callback(algorithm, key)
            # The host operation always goes through untouched
            return await original(algorithm, key, data)

        setattr(self.target, self.attribute, intercepted)
        self._installed = True
        log.debug("Decrypt primitive intercepted")

    def remove(self):
        if not self._installed:
            return
        if self._own_attribute:
            setattr(self.target, self.attribute, self._original)
        else:
            delattr(self.target, self.attribute)
        self._installed = False
        log.debug("Decrypt primitive restored")

    async def original_decrypt(self, algorithm: Algorithm, key: RowKey, data: bytes) -> bytes:
        return await self._original(algorithm, key, data)


class KeyDiscovery:
    def __init__(self, holder: ContextHolder, observer: DecryptObserver):
        self.holder = holder
        self.observer = observer
        self._test_data: OpaqueData | None = None
        self._found: asyncio.Future | None = None
        self._probes = set()

    async def discover(self, source: RecordSource, timeout: float = None) -> DecryptionContext:
        """Waits until the host decrypts something with the row key. Returns the shared context."""
        if self.holder.discovered:
            log.info("Reusing previously stored decryption arguments")
            return self.holder.get()

        # Any encrypted text message will do as test data
        test_record = await source.first(C.MESSAGE_STORE, is_chat_row)
        if test_record is None:
            raise KeyDiscoveryError("No encrypted chat message found to test keys against")
        self._test_data = OpaqueData.from_record(test_record)

        self._found = asyncio.get_running_loop().create_future()
        self.holder.start_probing()
        self.observer.install(self._on_decrypt)
        log.info("No decrypt args found, waiting for them (open a few chats!)")
        try:
            await asyncio.wait_for(asyncio.shield(self._found), timeout)
        except asyncio.TimeoutError:
            raise KeyDiscoveryError("Decrypt args not found after {} seconds".format(timeout)) from None
        finally:
            self.observer.remove()
        return self.holder.get()

    def _on_decrypt(self, algorithm: Algorithm, key: RowKey):
        if self.holder.discovered:
            return
        task = asyncio.ensure_future(self._probe(algorithm, key))
        self._probes.add(task)
        task.add_done_callback(self._probes.discard)

    async def _probe(self, algorithm: Algorithm, key: RowKey):
        try:
            msg_bytes = await self.observer.original_decrypt(algorithm.with_iv(self._test_data.iv), key,
                                                             self._test_data.data)
            decode_message_row(msg_bytes)
        except (ValueError, TypeError, DecodeError) as e:
            log.debug("Could not decode test data: {}".format(e))
            return
        # Several probes can succeed concurrently, the first one wins
        if self.holder.set_once(DecryptionContext(algorithm.without_iv(), key)):
            log.info("Decrypt args found ({})".format(algorithm.name))
        self.observer.remove()
        if not self._found.done():
            self._found.set_result(None)
