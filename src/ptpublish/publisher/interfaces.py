"""Interfaces for the publisher module's external collaborators."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from ptpublish.shared.models import AddTorrentOptions, PublishResult, SiteTorrent

if TYPE_CHECKING:
    from ptpublish.publisher.metadata import Metadata


@runtime_checkable
class Site(Protocol):
    """Protocol for tracker site implementations."""

    name: str

    async def get_status(self) -> str:
        """Verify the site is reachable and the credentials are accepted.

        Returns:
            The logged-in user name.
        """
        ...

    async def search(self, query: str) -> list[SiteTorrent]:
        """Search the site's torrents.

        Results are a superset: sites may do fuzzy or substring matching.

        Args:
            query: Search query string.

        Returns:
            Matching torrents in site order.
        """
        ...

    async def publish_torrent(self, contents: bytes, metadata: Metadata) -> PublishResult:
        """Upload a torrent file with its metadata.

        Args:
            contents: Raw ``.torrent`` bytes.
            metadata: Release metadata; ``_dry_run`` requests validation only.

        Returns:
            ``submitted`` with the remote id, ``validated`` for a dry run, or
            ``failed`` with the site's reason.
        """
        ...

    async def download_torrent(self, torrent_id: str) -> tuple[bytes, str]:
        """Download a published torrent.

        Args:
            torrent_id: Remote torrent id.

        Returns:
            Raw torrent bytes and the suggested filename.
        """
        ...


@runtime_checkable
class TorrentClient(Protocol):
    """Protocol for local BitTorrent client implementations."""

    name: str

    async def health_check(self) -> str:
        """Verify API reachability and authentication.

        Returns:
            Client version string.
        """
        ...

    async def add_torrent(self, contents: bytes, options: AddTorrentOptions) -> None:
        """Add a torrent file to the client.

        Args:
            contents: Raw ``.torrent`` bytes.
            options: Save path, category and hash-check behaviour.
        """
        ...


@runtime_checkable
class TorrentBuilder(Protocol):
    """Protocol for building and verifying ``.torrent`` files."""

    async def make(self, directory: str, output: str) -> None:
        """Hash ``directory`` and write a torrent to ``output``, replacing it.

        Raises:
            TooSmallError: If the included content is below the minimum size.
        """
        ...

    async def verify(self, artifact: str, directory: str) -> float:
        """Check ``artifact`` against the bytes in ``directory``.

        Returns:
            Newest modification time among the included content files.

        Raises:
            ArtifactError: If the artifact is unreadable or does not match.
        """
        ...
