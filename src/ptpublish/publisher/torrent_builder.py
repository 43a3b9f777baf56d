"""Torrent creation and verification via torf."""

from __future__ import annotations

import asyncio
import fnmatch
import logging
import os
from pathlib import Path

import torf

from ptpublish.publisher.metadata import METADATA_FILE
from ptpublish.shared.exceptions import ArtifactError, FsError, TooSmallError

logger = logging.getLogger(__name__)

# Cover paths both with and without the leading "<folder name>/" component.
DEFAULT_EXCLUDE_GLOBS = (".*", "*/.*", METADATA_FILE, f"*/{METADATA_FILE}")


class TorfTorrentBuilder:
    """Torrent builder implementation using torf.

    Implements the ``TorrentBuilder`` protocol. Hashing runs in a worker
    thread to avoid blocking the event loop.
    """

    def __init__(
        self,
        *,
        min_size: int = -1,
        piece_length: int = 0,
        exclude_globs: tuple[str, ...] = DEFAULT_EXCLUDE_GLOBS,
        created_by: str = "ptpublish",
    ) -> None:
        self._min_size = min_size
        self._piece_length = piece_length
        self._exclude_globs = exclude_globs
        self._created_by = created_by

    async def make(self, directory: str, output: str) -> None:
        try:
            _, total, _ = await asyncio.to_thread(self.scan, directory)
        except OSError as exc:
            raise FsError(f"failed to scan {directory}: {exc}") from exc
        if self._min_size >= 0 and total < self._min_size:
            raise TooSmallError(f"torrent contents is too small: {total} < {self._min_size} bytes")

        def generate() -> None:
            torrent = torf.Torrent(
                path=directory,
                private=True,
                exclude_globs=list(self._exclude_globs),
                piece_size=self._piece_length or None,
                created_by=self._created_by,
            )
            torrent.generate()
            torrent.write(output, overwrite=True)

        logger.info("making torrent for %s (%.1f MB)", directory, total / 1_048_576)
        try:
            await asyncio.to_thread(generate)
        except torf.TorfError as exc:
            raise ArtifactError(f"failed to make torrent for {directory}: {exc}") from exc
        logger.info("torrent written: %s", output)

    async def verify(self, artifact: str, directory: str) -> float:
        def check() -> float:
            try:
                torrent = torf.Torrent.read(artifact)
                ok = torrent.verify(directory)
            except torf.TorfError as exc:
                raise ArtifactError(f"torrent {artifact} does not match {directory}: {exc}") from exc
            if not ok:
                raise ArtifactError(f"torrent {artifact} does not match {directory}")
            try:
                _, _, newest = self.scan(directory)
            except OSError as exc:
                raise FsError(f"failed to scan {directory}: {exc}") from exc
            return newest

        return await asyncio.to_thread(check)

    def scan(self, directory: str) -> tuple[list[Path], int, float]:
        """List the files a torrent of ``directory`` would include.

        Returns:
            The included files, their total size and their newest mtime.
        """
        root = Path(directory)
        files: list[Path] = []
        total = 0
        newest = 0.0
        for dirpath, _, filenames in os.walk(root):
            for filename in filenames:
                path = Path(dirpath) / filename
                relative = f"{root.name}/{path.relative_to(root).as_posix()}"
                if self._is_excluded(relative):
                    continue
                stat = path.stat()
                files.append(path)
                total += stat.st_size
                newest = max(newest, stat.st_mtime)
        return files, total, newest

    def _is_excluded(self, relative: str) -> bool:
        relative = relative.casefold()
        return any(fnmatch.fnmatch(relative, pattern.casefold()) for pattern in self._exclude_globs)
