"""Torrent artifact lifecycle for a content folder."""

from __future__ import annotations

import logging
from pathlib import Path

from ptpublish.publisher.interfaces import TorrentBuilder
from ptpublish.shared.exceptions import ArtifactError, FsError

logger = logging.getLogger(__name__)

ARTIFACT_FILE = ".torrent"


class ArtifactManager:
    """Build, verify and reuse the ``.torrent`` file bound to a content folder.

    An existing artifact is reused only if it verifies against the folder's
    current bytes and is not older than the newest content file; otherwise it
    is rebuilt in place.
    """

    def __init__(self, builder: TorrentBuilder) -> None:
        self._builder = builder

    @staticmethod
    def artifact_path(content_path: str | Path) -> Path:
        return Path(content_path) / ARTIFACT_FILE

    async def ensure(self, content_path: str | Path) -> bytes:
        """Return the artifact bytes, building or rebuilding as needed.

        Raises:
            TooSmallError: If the content is below the builder's minimum size.
        """
        directory = str(content_path)
        artifact = self.artifact_path(content_path)

        if not artifact.is_file():
            logger.debug("torrent file %s does not exist, make it", artifact)
            await self._builder.make(directory, str(artifact))
        elif reason := await self._stale_reason(artifact, directory):
            logger.info("torrent file %s is obsolete (%s), re-make it", artifact, reason)
            await self._builder.make(directory, str(artifact))
        else:
            logger.debug("torrent file %s is up to date, reuse it", artifact)

        try:
            return artifact.read_bytes()
        except OSError as exc:
            raise FsError(f"failed to read torrent {artifact}: {exc}") from exc

    async def _stale_reason(self, artifact: Path, directory: str) -> str | None:
        try:
            newest = await self._builder.verify(str(artifact), directory)
        except ArtifactError as exc:
            return f"verify failed: {exc}"
        try:
            artifact_mtime = artifact.stat().st_mtime
        except OSError as exc:
            raise FsError(f"failed to stat torrent {artifact}: {exc}") from exc
        if newest > artifact_mtime:
            return f"content_ts={newest:.0f} > torrent_ts={artifact_mtime:.0f}"
        return None
