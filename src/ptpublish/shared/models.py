"""Frozen Pydantic domain models shared by all modules."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ptpublish.shared.enums import ItemStatus, PublishOutcome


class SiteTorrent(BaseModel):
    """A torrent listed by a site search."""

    model_config = {"frozen": True}

    id: str
    name: str = ""
    description: str = ""


class PublishResult(BaseModel):
    """Outcome of a site publish call.

    ``torrent_id`` is only meaningful for ``SUBMITTED``; an empty id means the
    site accepted the request but treats the torrent as a duplicate.
    """

    model_config = {"frozen": True}

    outcome: PublishOutcome
    torrent_id: str = ""
    reason: str = ""

    @classmethod
    def submitted(cls, torrent_id: str) -> PublishResult:
        return cls(outcome=PublishOutcome.SUBMITTED, torrent_id=torrent_id)

    @classmethod
    def validated(cls) -> PublishResult:
        return cls(outcome=PublishOutcome.VALIDATED)

    @classmethod
    def failed(cls, reason: str) -> PublishResult:
        return cls(outcome=PublishOutcome.FAILED, reason=reason)


class AddTorrentOptions(BaseModel):
    """Options for adding a torrent to a BitTorrent client."""

    model_config = {"frozen": True}

    skip_checking: bool = False
    save_path: str = ""
    category: str = ""


class ItemResult(BaseModel):
    """Terminal result of processing one content folder."""

    model_config = {"frozen": True}

    content_path: str
    status: ItemStatus
    torrent_id: str = ""
    message: str = ""

    def render(self) -> str:
        """Render a one-line report prefixed with the status glyph."""
        return f'{self.status.glyph} "{self.content_path}": {self.message}'


class BatchSummary(BaseModel):
    """Aggregated outcome of a batch run."""

    model_config = {"frozen": True}

    results: list[ItemResult] = Field(default_factory=list)

    @property
    def errors(self) -> int:
        return sum(1 for r in self.results if not r.status.ok)

    @property
    def handled(self) -> int:
        return sum(1 for r in self.results if r.status.handled)

    @property
    def ok(self) -> bool:
        return self.errors == 0
