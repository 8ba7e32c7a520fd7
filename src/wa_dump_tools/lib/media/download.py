from __future__ import annotations

import logging

import httpx

from wa_dump_tools.lib.constants import C
from wa_dump_tools.lib.errors import MediaDownloadError

log = logging.getLogger(__name__)


class MediaDownloader:
    """Fetches encrypted media from the WhatsApp CDN."""

    def __init__(self, hostname: str = C.MEDIA_HOSTNAME, client: httpx.AsyncClient = None,
                 timeout: float = 60.0):
        self._base_url = "https://{}".format(hostname)
        self._own_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(
            headers={"User-Agent": "wa-dump-tools"},
            timeout=timeout,
            follow_redirects=True,
        )

    def url(self, direct_path: str) -> str:
        return self._base_url + direct_path

    async def fetch(self, direct_path: str) -> bytes:
        """Returns the encrypted file. Raises MediaDownloadError on any failure."""
        if not direct_path:
            raise MediaDownloadError(self._base_url, "no directPath")
        url = self.url(direct_path)
        try:
            resp = await self._client.get(url)
        # InvalidURL (malformed directPath) is not an HTTPError
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise MediaDownloadError(url, str(e) or type(e).__name__) from e
        if not resp.is_success:
            raise MediaDownloadError(url, "HTTP {}".format(resp.status_code), resp.status_code)
        return resp.content

    async def close(self):
        if self._own_client:
            await self._client.aclose()

    async def __aenter__(self) -> MediaDownloader:
        return self

    async def __aexit__(self, *exc_info):
        await self.close()
