"""Hierarchical exception types for the publishing pipeline."""

from __future__ import annotations


class PtpublishError(Exception):
    """Base exception for all ptpublish errors."""


# ── Infrastructure ──────────────────────────────────────────────


class ConfigError(PtpublishError):
    """Invalid or incomplete configuration."""


class FsError(PtpublishError):
    """Underlying filesystem operation failed."""


# ── Metadata ────────────────────────────────────────────────────


class InvalidMetadataError(PtpublishError):
    """Metadata file is malformed or lacks required fields."""


class InvalidFormatError(InvalidMetadataError):
    """Metadata file does not carry a delimited front matter block."""


class MetadataParseError(InvalidMetadataError):
    """Front matter block could not be decoded."""


class NoMetadataError(PtpublishError):
    """Metadata file is required but absent."""


class TagMismatchError(PtpublishError):
    """Metadata carries none of the required tags."""


# ── Publish state ───────────────────────────────────────────────


class ExistingError(PtpublishError):
    """Equivalent content already exists on the site."""


class AlreadyPublishedError(PtpublishError):
    """Content was already published to the site by this tool."""


class MarkerError(PtpublishError):
    """Publish marker could not be read or written."""


class MarkerConflictError(MarkerError):
    """A terminal marker is already set with different content."""


# ── Artifact ────────────────────────────────────────────────────


class TooSmallError(PtpublishError):
    """Torrent contents are below the configured minimum size."""


class ArtifactError(PtpublishError):
    """Torrent artifact could not be built, read or verified."""


# ── Relocation ──────────────────────────────────────────────────


class PathConflictError(PtpublishError):
    """Relocation target already exists."""


class PathMappingError(PtpublishError):
    """Local path cannot be mapped to a client path."""


# ── Collaborators ───────────────────────────────────────────────


class SiteError(PtpublishError):
    """Failed to communicate with the tracker site."""


class PublishRejectedError(SiteError):
    """Site refused the submitted torrent."""


class ClientError(PtpublishError):
    """Failed to communicate with the BitTorrent client."""
