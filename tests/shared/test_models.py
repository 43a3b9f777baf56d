"""Tests for shared Pydantic models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from ptpublish.shared.enums import ItemStatus, PublishOutcome
from ptpublish.shared.models import BatchSummary, ItemResult, PublishResult, SiteTorrent


class TestPublishResult:
    def test_submitted(self) -> None:
        result = PublishResult.submitted("42")
        assert result.outcome == PublishOutcome.SUBMITTED
        assert result.torrent_id == "42"

    def test_validated(self) -> None:
        assert PublishResult.validated().outcome == PublishOutcome.VALIDATED

    def test_failed_keeps_reason(self) -> None:
        result = PublishResult.failed("bad category")
        assert result.outcome == PublishOutcome.FAILED
        assert result.reason == "bad category"

    def test_frozen(self) -> None:
        result = PublishResult.submitted("42")
        with pytest.raises(ValidationError):
            result.torrent_id = "43"  # type: ignore[misc]


class TestSiteTorrent:
    def test_defaults(self) -> None:
        torrent = SiteTorrent(id="1")
        assert torrent.name == ""
        assert torrent.description == ""


class TestItemResult:
    def test_render(self) -> None:
        result = ItemResult(content_path="/save/Foo", status=ItemStatus.PUBLISHED, message="published as id 1")
        assert result.render() == '✓ "/save/Foo": published as id 1'


class TestBatchSummary:
    def test_counts(self) -> None:
        summary = BatchSummary(
            results=[
                ItemResult(content_path="a", status=ItemStatus.PUBLISHED),
                ItemResult(content_path="b", status=ItemStatus.EXISTING),
                ItemResult(content_path="c", status=ItemStatus.FAILED),
            ]
        )
        assert summary.errors == 1
        assert summary.handled == 2
        assert not summary.ok

    def test_empty_is_ok(self) -> None:
        assert BatchSummary().ok
