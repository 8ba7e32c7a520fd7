import asyncio

import pytest

from wa_dump_tools.lib.cipher import Algorithm, HostCrypto
from wa_dump_tools.lib.context import ContextHolder, DecryptionContext, DiscoveryState, decrypt_row
from wa_dump_tools.lib.discovery import KeyDiscovery, MethodInterceptor
from wa_dump_tools.lib.errors import KeyDiscoveryError, KeyNotDiscoveredError
from wa_dump_tools.lib.key.rowkey import RowKey
from wa_dump_tools.lib.record import OpaqueData
from wa_dump_tools.lib.source import MemoryRecordSource

from tests.utils.utils import ROW_KEY, WRONG_KEY, chat_record, encrypt_gcm

IV = bytes(range(12))
HOST_IV = bytes(range(100, 112))


def source():
    return MemoryRecordSource({"message": [
        {"id": "media", "type": "image"},
        chat_record("m1", "hi", IV),
    ]})


async def until_installed(interceptor: MethodInterceptor):
    while not interceptor.installed:
        await asyncio.sleep(0)


async def host_decrypt(host: HostCrypto, key: bytes, plaintext: bytes) -> bytes:
    data = encrypt_gcm(key, HOST_IV, plaintext)
    return await host.decrypt(Algorithm("AES-GCM", iv=HOST_IV), RowKey(key), data)


class TestKeyDiscovery:
    @pytest.mark.asyncio
    async def test_discovers_row_key(self):
        host = HostCrypto()
        interceptor = MethodInterceptor(host)
        holder = ContextHolder()
        task = asyncio.ensure_future(KeyDiscovery(holder, interceptor).discover(source(), timeout=5))
        await until_installed(interceptor)
        assert holder.state is DiscoveryState.PROBING

        # Unrelated decryptions go through untouched and do not match the test row
        assert await host_decrypt(host, WRONG_KEY, b'profile picture') == b'profile picture'
        await asyncio.sleep(0.01)
        assert not holder.discovered

        assert await host_decrypt(host, ROW_KEY, b'some row') == b'some row'
        context = await task

        assert context.key == RowKey(ROW_KEY)
        assert context.algorithm.name == "AES-GCM"
        assert context.algorithm.iv is None
        assert holder.get() is context
        assert holder.state is DiscoveryState.DISCOVERED
        # The host primitive is back to normal
        assert not interceptor.installed
        assert "decrypt" not in host.__dict__

    @pytest.mark.asyncio
    async def test_discovered_context_decrypts_rows(self):
        host = HostCrypto()
        interceptor = MethodInterceptor(host)
        holder = ContextHolder()
        task = asyncio.ensure_future(KeyDiscovery(holder, interceptor).discover(source(), timeout=5))
        await until_installed(interceptor)
        await host_decrypt(host, ROW_KEY, b'')
        context = await task

        other_iv = bytes(range(50, 62))
        record = chat_record("m2", "another", other_iv, b64=True)
        assert decrypt_row(context, OpaqueData.from_record(record)).endswith(b'another')

    @pytest.mark.asyncio
    async def test_host_errors_propagate(self):
        host = HostCrypto()
        interceptor = MethodInterceptor(host)
        holder = ContextHolder()
        task = asyncio.ensure_future(KeyDiscovery(holder, interceptor).discover(source(), timeout=5))
        await until_installed(interceptor)
        with pytest.raises(ValueError):
            await host.decrypt(Algorithm("AES-GCM", iv=HOST_IV), RowKey(ROW_KEY), b'\x00' * 32)
        await host_decrypt(host, ROW_KEY, b'')
        await task

    @pytest.mark.asyncio
    async def test_concurrent_matches(self):
        host = HostCrypto()
        interceptor = MethodInterceptor(host)
        holder = ContextHolder()
        task = asyncio.ensure_future(KeyDiscovery(holder, interceptor).discover(source(), timeout=5))
        await until_installed(interceptor)
        await asyncio.gather(host_decrypt(host, ROW_KEY, b'a'), host_decrypt(host, ROW_KEY, b'b'))
        context = await task
        assert holder.get() is context

    @pytest.mark.asyncio
    async def test_second_discovery_reuses_context(self):
        holder = ContextHolder()
        context = DecryptionContext(Algorithm("AES-GCM"), RowKey(ROW_KEY))
        assert holder.set_once(context)

        host = HostCrypto()
        interceptor = MethodInterceptor(host)
        assert await KeyDiscovery(holder, interceptor).discover(source(), timeout=0.1) is context
        assert not interceptor.installed
        assert "decrypt" not in host.__dict__

    @pytest.mark.asyncio
    async def test_no_chat_row(self):
        host = HostCrypto()
        interceptor = MethodInterceptor(host)
        empty = MemoryRecordSource({"message": [{"id": "media", "type": "image"}]})
        with pytest.raises(KeyDiscoveryError):
            await KeyDiscovery(ContextHolder(), interceptor).discover(empty)
        assert not interceptor.installed

    @pytest.mark.asyncio
    async def test_timeout(self):
        host = HostCrypto()
        interceptor = MethodInterceptor(host)
        holder = ContextHolder()
        with pytest.raises(KeyDiscoveryError):
            await KeyDiscovery(holder, interceptor).discover(source(), timeout=0.05)
        assert not interceptor.installed
        assert "decrypt" not in host.__dict__
        with pytest.raises(KeyNotDiscoveredError):
            holder.get()


class TestMethodInterceptor:
    def test_cannot_install_twice(self):
        interceptor = MethodInterceptor(HostCrypto())
        interceptor.install(lambda algorithm, key: None)
        interceptor.remove()
        interceptor.remove()
        with pytest.raises(RuntimeError):
            interceptor.install(lambda algorithm, key: None)

    @pytest.mark.asyncio
    async def test_callback_sees_arguments(self):
        host = HostCrypto()
        seen = []
        interceptor = MethodInterceptor(host)
        interceptor.install(lambda algorithm, key: seen.append((algorithm, key)))
        assert await host_decrypt(host, WRONG_KEY, b'x') == b'x'
        interceptor.remove()
        await host_decrypt(host, WRONG_KEY, b'y')
        assert seen == [(Algorithm("AES-GCM", iv=HOST_IV), RowKey(WRONG_KEY))]


class TestContextHolder:
    def test_first_writer_wins(self):
        holder = ContextHolder()
        assert holder.state is DiscoveryState.UNKNOWN
        first = DecryptionContext(Algorithm("AES-GCM"), RowKey(ROW_KEY))
        second = DecryptionContext(Algorithm("AES-CBC"), RowKey(WRONG_KEY))
        assert holder.set_once(first)
        assert not holder.set_once(second)
        assert holder.get() is first

    def test_not_discovered(self):
        with pytest.raises(KeyNotDiscoveredError):
            ContextHolder().get()
