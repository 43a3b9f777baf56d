"""File-marker based publish state for a (content folder, site) pair.

Markers live inside the content folder so they follow it when it is moved:

* ``.existing-<site>``: the site already has an equivalent release.
* ``.published-<site>``: this tool published the folder; holds the remote id.
* ``.<site>.torrent``: copy of the torrent downloaded from the site.

``existing`` and ``published`` are mutually exclusive and never removed by
this package.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from ptpublish.shared.exceptions import FsError, MarkerConflictError

logger = logging.getLogger(__name__)

EXISTING_MARKER = ".existing-{site}"
PUBLISHED_MARKER = ".published-{site}"
CACHED_TORRENT = ".{site}.torrent"


class PublishMarkers:
    """Durable publish state of one content folder on one site."""

    def __init__(self, content_path: str | Path, site_name: str) -> None:
        self._content_path = Path(content_path)
        self._site_name = site_name

    @property
    def existing_path(self) -> Path:
        return self._content_path / EXISTING_MARKER.format(site=self._site_name)

    @property
    def published_path(self) -> Path:
        return self._content_path / PUBLISHED_MARKER.format(site=self._site_name)

    @property
    def cached_torrent_path(self) -> Path:
        return self._content_path / CACHED_TORRENT.format(site=self._site_name)

    def published_id(self) -> str | None:
        """Return the remembered remote id, or ``None`` if not published.

        An empty string means published without a remembered id.
        """
        if not self.published_path.is_file():
            return None
        return _read_text(self.published_path).strip()

    def existing_id(self) -> str | None:
        """Return the discovered remote id, or ``None`` if not known existing."""
        if not self.existing_path.is_file():
            return None
        return _read_text(self.existing_path).strip()

    def is_known_existing(self) -> bool:
        return self.existing_path.is_file()

    def record_published(self, torrent_id: str) -> None:
        """Persist the published marker. Repeating the same id is a no-op."""
        if self.is_known_existing():
            raise MarkerConflictError(f"{self.existing_path} is set, refusing to mark as published")
        self._record(self.published_path, torrent_id)

    def record_existing(self, torrent_id: str = "") -> None:
        """Persist the existing marker. Repeating the same id is a no-op."""
        if self.published_path.is_file():
            raise MarkerConflictError(f"{self.published_path} is set, refusing to mark as existing")
        self._record(self.existing_path, torrent_id)

    def cached_artifact(self) -> bytes | None:
        """Return the cached site torrent, or ``None`` if it is not cached."""
        if not self.cached_torrent_path.is_file():
            return None
        try:
            return self.cached_torrent_path.read_bytes()
        except OSError as exc:
            raise FsError(f"failed to read cached torrent {self.cached_torrent_path}: {exc}") from exc

    def store_artifact(self, contents: bytes) -> None:
        atomic_write(self.cached_torrent_path, contents)
        logger.debug("cached site torrent %s", self.cached_torrent_path)

    def _record(self, path: Path, torrent_id: str) -> None:
        if path.is_file():
            current = _read_text(path).strip()
            if current == torrent_id:
                return
            raise MarkerConflictError(f"{path} already holds id {current!r}, not {torrent_id!r}")
        atomic_write(path, torrent_id.encode("utf-8"))
        logger.info("wrote marker %s (id=%r)", path, torrent_id)


def atomic_write(path: Path, contents: bytes) -> None:
    """Write ``contents`` to ``path`` via a temp file and ``os.replace``."""
    try:
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(contents)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise FsError(f"failed to write {path}: {exc}") from exc


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FsError(f"failed to read {path}: {exc}") from exc
