"""Unit3D tracker site client via its JSON API."""

from __future__ import annotations

import logging
import re
from typing import Any

import httpx

from ptpublish.config import SiteConfig
from ptpublish.publisher.metadata import DRY_RUN_KEY, Metadata
from ptpublish.shared.exceptions import SiteError
from ptpublish.shared.models import PublishResult, SiteTorrent

logger = logging.getLogger(__name__)

# Unit3D API docs:
# https://github.com/HDInnovations/UNIT3D-Community-Edition/wiki/Torrent-API-(UNIT3D-v8.x.x)

_DOWNLOAD_ID_RE = re.compile(r"/download/(\d+)")
_FILENAME_RE = re.compile(r'filename="?([^";]+)"?')
_EXTERNAL_ID_KEYS = ("tmdb", "imdb", "tvdb", "mal", "igdb")


class Unit3dSite:
    """Tracker site implementation using the Unit3D API.

    Implements the ``Site`` protocol.
    """

    def __init__(
        self,
        name: str,
        base_url: str,
        api_key: str,
        *,
        timeout: int = 30,
        category_id: str = "",
        type_id: str = "",
        resolution_id: str = "",
        anonymous: bool = False,
    ) -> None:
        self.name = name
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._category_id = category_id
        self._type_id = type_id
        self._resolution_id = resolution_id
        self._anonymous = anonymous

    @classmethod
    def from_config(cls, config: SiteConfig) -> Unit3dSite:
        return cls(
            config.name,
            config.url,
            config.api_key,
            timeout=config.timeout,
            category_id=config.category_id,
            type_id=config.type_id,
            resolution_id=config.resolution_id,
            anonymous=config.anonymous,
        )

    async def get_status(self) -> str:
        """Verify API reachability and the API token.

        Returns:
            The user name owning the API token.

        Raises:
            SiteError: If the site is unreachable or rejects the token.
        """
        data = await self._get_json("/api/user")
        username = str(data.get("username") or data.get("data", {}).get("username") or "")
        if not username:
            raise SiteError(f"{self.name}: status response carries no user name")
        logger.info("site %s status ok (user=%s)", self.name, username)
        return username

    async def search(self, query: str) -> list[SiteTorrent]:
        data = await self._get_json("/api/torrents/filter", params={"name": query})
        results: list[SiteTorrent] = []
        for item in data.get("data", []):
            attributes = item.get("attributes", {})
            results.append(
                SiteTorrent(
                    id=str(item.get("id", "")),
                    name=attributes.get("name") or "",
                    description=attributes.get("description") or "",
                )
            )
        logger.info("site %s returned %d results for query=%r", self.name, len(results), query)
        return results

    async def publish_torrent(self, contents: bytes, metadata: Metadata) -> PublishResult:
        """Upload a torrent via ``/api/torrents/upload``.

        A dry run validates the form locally and never contacts the site.
        A rejection because the info hash is already taken is reported as
        ``submitted`` with an empty id.
        """
        form = self._build_form(metadata)
        missing = [key for key in ("name", "category_id", "type_id") if not form.get(key)]
        if missing:
            return PublishResult.failed(f"missing required fields: {', '.join(missing)}")
        if metadata.first(DRY_RUN_KEY):
            logger.info("site %s: dry run, not uploading %r", self.name, form["name"])
            return PublishResult.validated()

        filename = f"{form['name']}.torrent"
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    f"{self._base_url}/api/torrents/upload",
                    params={"api_token": self._api_key},
                    data=form,
                    files={"torrent": (filename, contents, "application/x-bittorrent")},
                )
        except httpx.HTTPError as exc:
            raise SiteError(f"{self.name} upload request failed: {exc}") from exc

        try:
            payload: dict[str, Any] = resp.json()
        except ValueError as exc:
            raise SiteError(f"{self.name} returned {resp.status_code}: {resp.text[:200]}") from exc

        if not payload.get("success"):
            errors = payload.get("data")
            if isinstance(errors, dict) and "info_hash" in errors:
                logger.info("site %s: torrent already exists (%s)", self.name, errors["info_hash"])
                return PublishResult.submitted("")
            reason = payload.get("message") or f"HTTP {resp.status_code}"
            if errors:
                reason = f"{reason} {errors}"
            return PublishResult.failed(str(reason))

        match = _DOWNLOAD_ID_RE.search(str(payload.get("data", "")))
        if not match:
            raise SiteError(f"{self.name} upload succeeded but returned no torrent id: {payload}")
        torrent_id = match.group(1)
        logger.info("site %s: published %r as id %s", self.name, form["name"], torrent_id)
        return PublishResult.submitted(torrent_id)

    async def download_torrent(self, torrent_id: str) -> tuple[bytes, str]:
        data = await self._get_json(f"/api/torrents/{torrent_id}")
        attributes = data.get("data", data).get("attributes", {})
        link = attributes.get("download_link")
        if not link:
            raise SiteError(f"{self.name}: torrent {torrent_id} has no download link")

        try:
            async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
                resp = await client.get(link)
                resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise SiteError(f"{self.name} returned {exc.response.status_code} for torrent {torrent_id}") from exc
        except httpx.HTTPError as exc:
            raise SiteError(f"{self.name} download request failed: {exc}") from exc

        contents = resp.content
        if not contents.startswith(b"d"):
            raise SiteError(f"{self.name}: torrent {torrent_id} download is not a torrent file")
        match = _FILENAME_RE.search(resp.headers.get("content-disposition", ""))
        filename = match.group(1) if match else f"{torrent_id}.torrent"
        logger.info("site %s: downloaded torrent %s (%d bytes)", self.name, torrent_id, len(contents))
        return contents, filename

    def _build_form(self, metadata: Metadata) -> dict[str, str]:
        form = {
            "name": metadata.title,
            "description": metadata.first("comment") or metadata.text,
            "mediainfo": metadata.first("mediainfo"),
            "category_id": metadata.first("category_id", self._category_id),
            "type_id": metadata.first("type_id", self._type_id),
            "resolution_id": metadata.first("resolution_id", self._resolution_id),
            "anonymous": "1" if self._anonymous else "0",
            "sd": "0",
            "stream": "0",
            "personal_release": "0",
            "internal": "0",
        }
        for key in _EXTERNAL_ID_KEYS:
            form[key] = metadata.first(key, "0")
        if keywords := metadata.tags:
            form["keywords"] = ", ".join(keywords)
        return form

    async def _get_json(self, path: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        query = {"api_token": self._api_key, **(params or {})}
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.get(f"{self._base_url}{path}", params=query)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as exc:
            raise SiteError(f"{self.name} returned {exc.response.status_code}: {exc.response.text[:200]}") from exc
        except httpx.HTTPError as exc:
            raise SiteError(f"{self.name} request failed: {exc}") from exc
        except ValueError as exc:
            raise SiteError(f"{self.name} returned invalid JSON for {path}") from exc
        if not isinstance(data, dict):
            raise SiteError(f"{self.name} returned unexpected payload for {path}")
        return data
