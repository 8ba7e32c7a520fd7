import pytest

from wa_dump_tools.lib.cipher import Algorithm, HostCrypto, decrypt
from wa_dump_tools.lib.errors import UnsupportedAlgorithmError
from wa_dump_tools.lib.key.rowkey import RowKey

from tests.utils.utils import ROW_KEY, WRONG_KEY, encrypt_cbc, encrypt_gcm

IV = bytes(range(12))
CBC_IV = bytes(range(16))


class TestDecrypt:
    def test_gcm(self):
        data = encrypt_gcm(ROW_KEY, IV, b'hello')
        assert decrypt(Algorithm("AES-GCM", iv=IV), RowKey(ROW_KEY), data) == b'hello'

    def test_gcm_wrong_key(self):
        data = encrypt_gcm(ROW_KEY, IV, b'hello')
        with pytest.raises(ValueError):
            decrypt(Algorithm("AES-GCM", iv=IV), RowKey(WRONG_KEY), data)

    def test_gcm_short_data(self):
        with pytest.raises(ValueError):
            decrypt(Algorithm("AES-GCM", iv=IV), RowKey(ROW_KEY), b'\x00' * 4)

    def test_cbc(self):
        data = encrypt_cbc(ROW_KEY, CBC_IV, b'hello')
        assert decrypt(Algorithm("AES-CBC", iv=CBC_IV), RowKey(ROW_KEY), data) == b'hello'

    def test_missing_iv(self):
        with pytest.raises(ValueError):
            decrypt(Algorithm("AES-GCM"), RowKey(ROW_KEY), b'\x00' * 32)

    def test_unsupported(self):
        with pytest.raises(UnsupportedAlgorithmError):
            decrypt(Algorithm("AES-CTR", iv=CBC_IV), RowKey(ROW_KEY), b'\x00' * 32)


class TestAlgorithm:
    def test_from_dict(self):
        algorithm = Algorithm.from_dict({"name": "AES-GCM", "iv": IV.hex(), "tagLength": 128})
        assert algorithm == Algorithm("AES-GCM", iv=IV)

    def test_iv_is_replaceable(self):
        algorithm = Algorithm("AES-GCM", iv=IV)
        assert algorithm.without_iv().iv is None
        assert algorithm.without_iv().with_iv(IV) == algorithm
        # the original is untouched
        assert algorithm.iv == IV


@pytest.mark.asyncio
async def test_host_crypto():
    data = encrypt_gcm(ROW_KEY, IV, b'hello')
    assert await HostCrypto().decrypt(Algorithm("AES-GCM", iv=IV), RowKey(ROW_KEY), data) == b'hello'
