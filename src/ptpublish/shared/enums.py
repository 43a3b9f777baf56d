"""Domain enumerations used across all modules."""

from __future__ import annotations

from enum import Enum, unique


@unique
class PublishOutcome(str, Enum):
    """Result variants of a site publish call."""

    SUBMITTED = "submitted"
    VALIDATED = "validated"
    FAILED = "failed"


@unique
class ItemStatus(str, Enum):
    """Terminal classification of one content folder in a batch."""

    PUBLISHED = "published"
    DRY_RUN = "dry_run"
    ALREADY_PUBLISHED = "already_published"
    EXISTING = "existing"
    NO_METADATA = "no_metadata"
    TAG_MISMATCH = "tag_mismatch"
    TOO_SMALL = "too_small"
    FAILED = "failed"

    @property
    def glyph(self) -> str:
        return _GLYPHS[self]

    @property
    def ok(self) -> bool:
        """Whether the item counts as a success for the batch exit code."""
        return self is not ItemStatus.FAILED

    @property
    def handled(self) -> bool:
        """Whether the item counts toward the ``max_torrents`` cap."""
        return self in (ItemStatus.PUBLISHED, ItemStatus.DRY_RUN, ItemStatus.FAILED)


_GLYPHS: dict[ItemStatus, str] = {
    ItemStatus.PUBLISHED: "✓",
    ItemStatus.DRY_RUN: "→",
    ItemStatus.ALREADY_PUBLISHED: "*",
    ItemStatus.EXISTING: "-",
    ItemStatus.NO_METADATA: "-",
    ItemStatus.TAG_MISMATCH: "-",
    ItemStatus.TOO_SMALL: "!",
    ItemStatus.FAILED: "X",
}
