"""Tests for file-marker publish state."""

from __future__ import annotations

from pathlib import Path

import pytest

from ptpublish.publisher.markers import PublishMarkers, atomic_write
from ptpublish.shared.exceptions import MarkerConflictError


@pytest.fixture
def markers(tmp_path: Path) -> PublishMarkers:
    return PublishMarkers(tmp_path, "tracker")


class TestPublishMarkers:
    def test_fresh_folder_has_no_state(self, markers: PublishMarkers) -> None:
        assert markers.published_id() is None
        assert markers.existing_id() is None
        assert not markers.is_known_existing()
        assert markers.cached_artifact() is None

    def test_file_names_embed_site(self, tmp_path: Path, markers: PublishMarkers) -> None:
        assert markers.published_path == tmp_path / ".published-tracker"
        assert markers.existing_path == tmp_path / ".existing-tracker"
        assert markers.cached_torrent_path == tmp_path / ".tracker.torrent"

    def test_record_published(self, markers: PublishMarkers) -> None:
        markers.record_published("123")
        assert markers.published_id() == "123"
        assert markers.published_path.read_text() == "123"

    def test_record_published_is_idempotent(self, markers: PublishMarkers) -> None:
        markers.record_published("123")
        mtime = markers.published_path.stat().st_mtime_ns
        markers.record_published("123")
        assert markers.published_path.stat().st_mtime_ns == mtime

    def test_record_published_with_different_id_conflicts(self, markers: PublishMarkers) -> None:
        markers.record_published("123")
        with pytest.raises(MarkerConflictError):
            markers.record_published("456")
        assert markers.published_id() == "123"

    def test_existing_and_published_are_exclusive(self, markers: PublishMarkers) -> None:
        markers.record_existing("9")
        with pytest.raises(MarkerConflictError):
            markers.record_published("123")
        assert markers.published_id() is None

    def test_published_blocks_existing(self, markers: PublishMarkers) -> None:
        markers.record_published("123")
        with pytest.raises(MarkerConflictError):
            markers.record_existing("9")

    def test_empty_existing_marker(self, markers: PublishMarkers) -> None:
        markers.record_existing()
        assert markers.is_known_existing()
        assert markers.existing_id() == ""
        markers.record_existing("")

    def test_empty_published_marker_means_published(self, markers: PublishMarkers) -> None:
        markers.published_path.write_text("")
        assert markers.published_id() == ""

    def test_markers_are_per_site(self, tmp_path: Path, markers: PublishMarkers) -> None:
        markers.record_published("123")
        assert PublishMarkers(tmp_path, "other").published_id() is None

    def test_cached_artifact_roundtrip(self, markers: PublishMarkers) -> None:
        markers.store_artifact(b"d4:infod0:ee")
        assert markers.cached_artifact() == b"d4:infod0:ee"

    def test_state_survives_folder_move(self, tmp_path: Path) -> None:
        source = tmp_path / "a"
        source.mkdir()
        PublishMarkers(source, "tracker").record_published("7")
        target = tmp_path / "b"
        source.rename(target)
        assert PublishMarkers(target, "tracker").published_id() == "7"


class TestAtomicWrite:
    def test_replaces_and_leaves_no_temp_files(self, tmp_path: Path) -> None:
        path = tmp_path / "marker"
        atomic_write(path, b"one")
        atomic_write(path, b"two")
        assert path.read_bytes() == b"two"
        assert [p.name for p in tmp_path.iterdir()] == ["marker"]
