"""QBittorrent client implementation via Web API."""

from __future__ import annotations

import logging

import httpx

from ptpublish.config import ClientConfig
from ptpublish.shared.exceptions import ClientError
from ptpublish.shared.models import AddTorrentOptions

logger = logging.getLogger(__name__)

# qBittorrent Web API docs:
# https://github.com/qbittorrent/qBittorrent/wiki/WebUI-API-(qBittorrent-4.1)


class QBitClient:
    """Torrent client implementation using qBittorrent Web API.

    Implements the ``TorrentClient`` protocol.
    """

    def __init__(
        self,
        name: str,
        base_url: str,
        username: str,
        password: str,
        *,
        timeout: int = 30,
    ) -> None:
        self.name = name
        self._base_url = base_url.rstrip("/")
        self._username = username
        self._password = password
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: ClientConfig) -> QBitClient:
        return cls(config.name, config.url, config.username, config.password, timeout=config.timeout)

    async def _login(self, client: httpx.AsyncClient) -> None:
        """Open a Web API session on ``client``."""
        resp = await client.post(
            f"{self._base_url}/api/v2/auth/login",
            data={"username": self._username, "password": self._password},
        )
        if resp.status_code != 200 or resp.text.strip().upper() != "OK.":
            raise ClientError(f"{self.name}: qBittorrent login failed: {resp.text[:200]}")
        if sid := resp.cookies.get("SID"):
            client.cookies.set("SID", sid)

    async def health_check(self) -> str:
        """Log in and return the qBittorrent version.

        Raises:
            ClientError: If the Web API is unreachable or rejects the credentials.
        """
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                await self._login(client)
                resp = await client.get(f"{self._base_url}/api/v2/app/version")
                resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ClientError(f"{self.name}: version check returned {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise ClientError(f"{self.name}: qBittorrent request failed: {exc}") from exc

        version = resp.text.strip()
        if not version or "<html" in version.lower():
            raise ClientError(f"{self.name}: {self._base_url} is not a qBittorrent Web API")
        logger.info("client %s ok (qBittorrent %s)", self.name, version)
        return version

    async def add_torrent(self, contents: bytes, options: AddTorrentOptions) -> None:
        """Upload a ``.torrent`` file to qBittorrent."""
        data = {
            "skip_checking": "true" if options.skip_checking else "false",
            "autoTMM": "false",
        }
        if options.save_path:
            data["savepath"] = options.save_path
        if options.category:
            data["category"] = options.category

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                await self._login(client)
                resp = await client.post(
                    f"{self._base_url}/api/v2/torrents/add",
                    data=data,
                    files={"torrents": ("upload.torrent", contents, "application/x-bittorrent")},
                )
                if resp.status_code != 200 or "fails" in resp.text.lower():
                    raise ClientError(f"{self.name}: qBittorrent add_torrent failed: {resp.text[:200]}")
        except httpx.HTTPError as exc:
            raise ClientError(f"{self.name}: qBittorrent request failed: {exc}") from exc

        logger.info("added torrent to %s (save_path=%s, category=%s)", self.name, options.save_path, options.category)
