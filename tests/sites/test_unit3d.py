"""Tests for Unit3dSite."""

from __future__ import annotations

import httpx
import pytest
import respx

from ptpublish.config import SiteConfig
from ptpublish.publisher.metadata import Metadata
from ptpublish.shared.enums import PublishOutcome
from ptpublish.shared.exceptions import SiteError
from ptpublish.sites.unit3d import Unit3dSite

BASE = "http://tracker.test"


@pytest.fixture
def site() -> Unit3dSite:
    return Unit3dSite.from_config(
        SiteConfig(name="tracker", url=BASE + "/", api_key="key", timeout=5, category_id="1", type_id="2")
    )


@pytest.fixture
def metadata() -> Metadata:
    return Metadata(title=["Foo"], tags=["music", "live"], _text=["Some description."])


class TestStatus:
    @respx.mock
    async def test_get_status(self, site: Unit3dSite) -> None:
        route = respx.get(f"{BASE}/api/user").mock(return_value=httpx.Response(200, json={"username": "uploader"}))

        assert await site.get_status() == "uploader"
        assert route.calls.last.request.url.params["api_token"] == "key"

    @respx.mock
    async def test_get_status_unauthorized(self, site: Unit3dSite) -> None:
        respx.get(f"{BASE}/api/user").mock(return_value=httpx.Response(401, text="Unauthenticated."))

        with pytest.raises(SiteError, match="returned 401"):
            await site.get_status()


class TestSearch:
    @respx.mock
    async def test_search_returns_results(self, site: Unit3dSite) -> None:
        payload = {
            "data": [
                {"id": 12, "attributes": {"name": "ABC-123 Foo", "description": "desc"}},
                {"id": "13", "attributes": {"name": "Other", "description": None}},
            ]
        }
        route = respx.get(f"{BASE}/api/torrents/filter").mock(return_value=httpx.Response(200, json=payload))

        results = await site.search("ABC-123")

        assert [r.id for r in results] == ["12", "13"]
        assert results[0].name == "ABC-123 Foo"
        assert results[1].description == ""
        assert route.calls.last.request.url.params["name"] == "ABC-123"

    @respx.mock
    async def test_search_connection_error(self, site: Unit3dSite) -> None:
        respx.get(f"{BASE}/api/torrents/filter").mock(side_effect=httpx.ConnectError("Connection refused"))

        with pytest.raises(SiteError, match="request failed"):
            await site.search("x")


class TestPublish:
    @respx.mock
    async def test_publish_success(self, site: Unit3dSite, metadata: Metadata) -> None:
        route = respx.post(f"{BASE}/api/torrents/upload").mock(
            return_value=httpx.Response(
                200,
                json={
                    "success": True,
                    "data": f"{BASE}/torrent/download/321.abcdef",
                    "message": "Torrent uploaded successfully.",
                },
            )
        )

        result = await site.publish_torrent(b"d1:ai1ee", metadata)

        assert result.outcome == PublishOutcome.SUBMITTED
        assert result.torrent_id == "321"
        body = route.calls.last.request.content
        assert b'name="name"' in body
        assert b"Some description." in body
        assert b"music, live" in body
        assert b"d1:ai1ee" in body

    @respx.mock
    async def test_dry_run_does_not_upload(self, site: Unit3dSite, metadata: Metadata) -> None:
        route = respx.post(f"{BASE}/api/torrents/upload")
        metadata.set("_dry_run", "1")

        result = await site.publish_torrent(b"d1:ai1ee", metadata)

        assert result.outcome == PublishOutcome.VALIDATED
        assert not route.called

    async def test_missing_category_fails_without_request(self, metadata: Metadata) -> None:
        site = Unit3dSite("tracker", BASE, "key")

        result = await site.publish_torrent(b"d1:ai1ee", metadata)

        assert result.outcome == PublishOutcome.FAILED
        assert "category_id" in result.reason

    def test_metadata_overrides_site_defaults(self, site: Unit3dSite, metadata: Metadata) -> None:
        metadata.set("category_id", "9")
        metadata.set("comment", "from comment")
        form = site._build_form(metadata)
        assert form["category_id"] == "9"
        assert form["type_id"] == "2"
        assert form["description"] == "from comment"
        assert form["tmdb"] == "0"

    @respx.mock
    async def test_duplicate_info_hash_is_submitted_without_id(self, site: Unit3dSite, metadata: Metadata) -> None:
        respx.post(f"{BASE}/api/torrents/upload").mock(
            return_value=httpx.Response(
                404,
                json={
                    "success": False,
                    "data": {"info_hash": ["The info hash has already been taken."]},
                    "message": "Validation Error.",
                },
            )
        )

        result = await site.publish_torrent(b"d1:ai1ee", metadata)

        assert result.outcome == PublishOutcome.SUBMITTED
        assert result.torrent_id == ""

    @respx.mock
    async def test_validation_error_fails(self, site: Unit3dSite, metadata: Metadata) -> None:
        respx.post(f"{BASE}/api/torrents/upload").mock(
            return_value=httpx.Response(
                404,
                json={"success": False, "data": {"name": ["The name has already been taken."]}, "message": "Validation Error."},
            )
        )

        result = await site.publish_torrent(b"d1:ai1ee", metadata)

        assert result.outcome == PublishOutcome.FAILED
        assert "Validation Error." in result.reason

    @respx.mock
    async def test_non_json_response(self, site: Unit3dSite, metadata: Metadata) -> None:
        respx.post(f"{BASE}/api/torrents/upload").mock(return_value=httpx.Response(502, text="<html>Bad Gateway"))

        with pytest.raises(SiteError, match="returned 502"):
            await site.publish_torrent(b"d1:ai1ee", metadata)

    @respx.mock
    async def test_success_without_id(self, site: Unit3dSite, metadata: Metadata) -> None:
        respx.post(f"{BASE}/api/torrents/upload").mock(
            return_value=httpx.Response(200, json={"success": True, "data": "ok"})
        )

        with pytest.raises(SiteError, match="no torrent id"):
            await site.publish_torrent(b"d1:ai1ee", metadata)


class TestDownload:
    @respx.mock
    async def test_download(self, site: Unit3dSite) -> None:
        link = f"{BASE}/torrent/download/321.abcdef"
        respx.get(f"{BASE}/api/torrents/321").mock(
            return_value=httpx.Response(200, json={"data": {"id": "321", "attributes": {"download_link": link}}})
        )
        respx.get(link).mock(
            return_value=httpx.Response(
                200,
                content=b"d8:announce0:e",
                headers={"Content-Disposition": 'attachment; filename="[tracker]Foo.torrent"'},
            )
        )

        contents, filename = await site.download_torrent("321")

        assert contents == b"d8:announce0:e"
        assert filename == "[tracker]Foo.torrent"

    @respx.mock
    async def test_download_rejects_html(self, site: Unit3dSite) -> None:
        link = f"{BASE}/torrent/download/321.abcdef"
        respx.get(f"{BASE}/api/torrents/321").mock(
            return_value=httpx.Response(200, json={"attributes": {"download_link": link}})
        )
        respx.get(link).mock(return_value=httpx.Response(200, text="<html>login</html>"))

        with pytest.raises(SiteError, match="not a torrent file"):
            await site.download_torrent("321")

    @respx.mock
    async def test_download_without_link(self, site: Unit3dSite) -> None:
        respx.get(f"{BASE}/api/torrents/321").mock(return_value=httpx.Response(200, json={"data": {"attributes": {}}}))

        with pytest.raises(SiteError, match="no download link"):
            await site.download_torrent("321")
