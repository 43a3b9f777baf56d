"""Shared pytest fixtures for the ptpublish test suite."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from ptpublish.config import ClientConfig, Settings, SiteConfig
from ptpublish.shared.models import PublishResult

SAMPLE_METADATA = "---\ntitle: Foo\ntags: music, live\n---\n\nSome description.\n"


@pytest.fixture()
def settings() -> Settings:
    """Return a Settings instance with test defaults."""
    return Settings(
        sites=[SiteConfig(name="tracker", url="http://tracker.test", api_key="key", category_id="1", type_id="2")],
        clients=[ClientConfig(name="local", url="http://qbit:8080", password="adminadmin")],
        site="tracker",
    )


@pytest.fixture()
def make_content(tmp_path: Path) -> Callable[..., Path]:
    """Create a content folder under ``tmp_path/save``."""

    def _make(
        name: str = "Foo",
        *,
        metadata: str | None = SAMPLE_METADATA,
        files: dict[str, bytes] | None = None,
    ) -> Path:
        folder = tmp_path / "save" / name
        folder.mkdir(parents=True)
        if metadata is not None:
            (folder / "metadata.nfo").write_text(metadata, encoding="utf-8")
        for rel, data in (files or {"video.mkv": b"x" * 4096}).items():
            path = folder / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        return folder

    return _make


@pytest.fixture()
def mock_site() -> AsyncMock:
    """Mock tracker site."""
    site = AsyncMock()
    site.name = "tracker"
    site.search.return_value = []
    site.publish_torrent.return_value = PublishResult.submitted("123")
    site.download_torrent.return_value = (b"d8:announce0:e", "123.torrent")
    site.get_status.return_value = "uploader"
    return site


@pytest.fixture()
def mock_client() -> AsyncMock:
    """Mock BitTorrent client."""
    client = AsyncMock()
    client.name = "local"
    client.add_torrent.return_value = None
    client.health_check.return_value = "5.0.5"
    return client
