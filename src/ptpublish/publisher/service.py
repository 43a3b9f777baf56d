"""Publisher service: content folder → site release → seeding client."""

from __future__ import annotations

import glob
import logging
import os
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path

from ptpublish.publisher.artifact import ArtifactManager
from ptpublish.publisher.existing import ExistingContentChecker
from ptpublish.publisher.interfaces import Site, TorrentClient
from ptpublish.publisher.markers import PublishMarkers
from ptpublish.publisher.metadata import (
    ARRAY_KEYS_KEY,
    COVER_KEY,
    DRY_RUN_KEY,
    IMAGES_KEY,
    METADATA_FILE,
    Metadata,
    merge_overrides,
    read_metadata_file,
)
from ptpublish.publisher.pathmap import PathMapper
from ptpublish.shared.enums import ItemStatus, PublishOutcome
from ptpublish.shared.exceptions import (
    AlreadyPublishedError,
    ExistingError,
    FsError,
    InvalidMetadataError,
    NoMetadataError,
    PathConflictError,
    PathMappingError,
    PtpublishError,
    PublishRejectedError,
    SiteError,
    TagMismatchError,
    TooSmallError,
)
from ptpublish.shared.models import AddTorrentOptions, BatchSummary, ItemResult

logger = logging.getLogger(__name__)

COVER = "cover"
IMAGE_EXTS = (".webp", ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".avif")

_SKIP_STATUSES: dict[type[PtpublishError], ItemStatus] = {
    AlreadyPublishedError: ItemStatus.ALREADY_PUBLISHED,
    ExistingError: ItemStatus.EXISTING,
    NoMetadataError: ItemStatus.NO_METADATA,
    TagMismatchError: ItemStatus.TAG_MISMATCH,
    TooSmallError: ItemStatus.TOO_SMALL,
}


class PublishService:
    """Publishes content folders to one site, at most once per folder.

    Flow per folder:
    1. Pre-flight: relocation target must be free and mappable for the client
    2. Read metadata (front matter file + overrides), apply the tag filter
    3. Short-circuit on the ``published`` / ``existing`` markers
    4. (Optional) live existing check against the site search
    5. Ensure the ``.torrent`` artifact matches the folder's bytes
    6. Publish, record the ``published`` marker, relocate the folder
    7. Download the site's torrent and add it to the client for seeding

    Markers are consulted before and written right after the remote publish
    call, so a rerun never publishes the same folder twice.
    """

    def __init__(
        self,
        *,
        site: Site,
        artifacts: ArtifactManager,
        checker: ExistingContentChecker | None = None,
        client: TorrentClient | None = None,
        path_mapper: PathMapper | None = None,
        overrides: Mapping[str, list[str]] | None = None,
        require_metadata: bool = True,
        array_keys: Iterable[str] = (),
        must_tags: Iterable[str] = (),
        image_patterns: Iterable[str] = (),
        move_ok_to: str = "",
        dry_run: bool = False,
        seeding_category: str = "",
        max_torrents: int = -1,
    ) -> None:
        self._site = site
        self._artifacts = artifacts
        self._checker = checker
        self._client = client
        self._path_mapper = path_mapper
        self._overrides = dict(overrides or {})
        self._require_metadata = require_metadata
        self._array_keys = list(array_keys)
        self._must_tags = list(must_tags)
        self._image_patterns = list(image_patterns)
        self._move_ok_to = move_ok_to
        self._dry_run = dry_run
        self._seeding_category = seeding_category
        self._max_torrents = max_torrents

    async def run_batch(
        self,
        content_paths: Iterable[str],
        *,
        report: Callable[[ItemResult], None] | None = None,
    ) -> BatchSummary:
        """Process folders in order until ``max_torrents`` items are handled."""
        results: list[ItemResult] = []
        handled = 0
        for content_path in content_paths:
            result = await self.publish_item(content_path)
            results.append(result)
            if report is not None:
                report(result)
            if result.status.handled:
                handled += 1
            if self._max_torrents > 0 and handled >= self._max_torrents:
                logger.info("max torrents (%d) reached, stopping", self._max_torrents)
                break

        summary = BatchSummary(results=results)
        logger.info("batch complete: %d items, %d handled, %d errors", len(results), summary.handled, summary.errors)
        return summary

    async def publish_item(self, content_path: str) -> ItemResult:
        """Process one content folder and classify the outcome."""
        try:
            result = await self._publish(content_path)
        except PtpublishError as exc:
            status = _SKIP_STATUSES.get(type(exc), ItemStatus.FAILED)
            result = ItemResult(content_path=content_path, status=status, message=str(exc))
        except Exception as exc:
            logger.exception("unexpected error publishing %s", content_path)
            result = ItemResult(
                content_path=content_path,
                status=ItemStatus.FAILED,
                message=f"{type(exc).__name__}: {exc}",
            )

        if result.status.ok:
            logger.info("%s: %s (%s)", content_path, result.status.value, result.message)
        else:
            logger.warning("%s: failed: %s", content_path, result.message)
        return result

    async def _publish(self, content_path: str) -> ItemResult:
        target_path = self._target_path(content_path)
        self._client_save_path(target_path)

        metadata = self._load_metadata(content_path)
        markers = PublishMarkers(content_path, self._site.name)

        # Resume: never call the publish API again for a marked folder.
        published_id = markers.published_id()
        if published_id is not None:
            target_path = self._relocate(content_path, target_path, already_published=True)
            try:
                await self._seed(target_path, published_id)
            except PtpublishError as exc:
                raise PtpublishError(f"failed to download published torrent: {exc}") from exc
            raise AlreadyPublishedError(f"already published (id: {published_id or 'unknown'})")

        if markers.is_known_existing():
            raise ExistingError("same contents torrent exists in site")

        if self._checker is not None and self._checker.applies(metadata):
            existing_id = await self._checker.check(metadata)
            if existing_id:
                markers.record_existing(existing_id)
                raise ExistingError(f"same contents torrent exists in site (id: {existing_id})")

        contents = await self._artifacts.ensure(content_path)
        if cover := _find_cover(content_path):
            metadata.set(COVER_KEY, cover)

        result = await self._site.publish_torrent(contents, metadata)
        if result.outcome is PublishOutcome.VALIDATED:
            self._relocate(content_path, target_path)
            return ItemResult(
                content_path=content_path,
                status=ItemStatus.DRY_RUN,
                message="ready to publish to site (dry run)",
            )
        if result.outcome is PublishOutcome.FAILED:
            raise PublishRejectedError(f"site rejected torrent: {result.reason}")

        torrent_id = result.torrent_id
        if not torrent_id:
            markers.record_existing("")
            raise ExistingError("site reports same contents torrent already exists")
        markers.record_published(torrent_id)

        try:
            target_path = self._relocate(content_path, target_path)
            added = await self._seed(target_path, torrent_id)
        except PtpublishError as exc:
            return ItemResult(
                content_path=content_path,
                status=ItemStatus.FAILED,
                torrent_id=torrent_id,
                message=f"torrent published (id: {torrent_id}) but {exc}",
            )

        message = f"published as id {torrent_id}"
        if added:
            message += "; added to client"
        return ItemResult(
            content_path=content_path,
            status=ItemStatus.PUBLISHED,
            torrent_id=torrent_id,
            message=message,
        )

    def _target_path(self, content_path: str) -> str:
        if not self._move_ok_to:
            return content_path
        target = os.path.join(self._move_ok_to, os.path.basename(os.path.normpath(content_path)))
        if os.path.lexists(target):
            raise PathConflictError(f"target path in move-ok-to dir {target!r} already exists")
        return target

    def _client_save_path(self, content_path: str) -> str:
        """Map the folder's parent to the client's view, before any mutation."""
        save_path = os.path.dirname(os.path.normpath(content_path))
        if self._path_mapper is None:
            return save_path
        mapped, matched = self._path_mapper.map(save_path)
        if not matched:
            raise PathMappingError(f"local path {save_path!r} can not be mapped to client path")
        return mapped

    def _load_metadata(self, content_path: str) -> Metadata:
        metadata_file = Path(content_path) / METADATA_FILE
        if metadata_file.is_file():
            metadata = read_metadata_file(metadata_file, self._array_keys)
        elif self._require_metadata:
            raise NoMetadataError("no metadata file")
        else:
            metadata = Metadata()

        merge_overrides(metadata, self._overrides)
        metadata[ARRAY_KEYS_KEY] = list(self._array_keys)
        if not metadata.title:
            raise InvalidMetadataError("no title meta data found")
        if self._must_tags and not any(tag in metadata.tags for tag in self._must_tags):
            raise TagMismatchError(f"torrent metadata does not have any tag of {self._must_tags}")

        if images := _collect_images(content_path, self._image_patterns):
            metadata[IMAGES_KEY] = images
        if self._dry_run:
            metadata.set(DRY_RUN_KEY, "1")
        return metadata

    def _relocate(self, content_path: str, target_path: str, *, already_published: bool = False) -> str:
        if target_path == content_path:
            return content_path
        try:
            os.replace(content_path, target_path)
        except OSError as exc:
            state = "torrent already published but failed" if already_published else "failed"
            raise FsError(f"{state} to move content folder to {target_path!r}: {exc}") from exc
        logger.info("moved %s → %s", content_path, target_path)
        return target_path

    async def _seed(self, content_path: str, torrent_id: str) -> bool:
        """Cache the site's torrent locally and add it to the client.

        Returns:
            Whether the torrent was added to a client.
        """
        markers = PublishMarkers(content_path, self._site.name)
        contents = markers.cached_artifact()
        if contents is None:
            if not torrent_id:
                raise SiteError("published torrent id is empty")
            contents, _ = await self._site.download_torrent(torrent_id)
            markers.store_artifact(contents)

        if self._client is None:
            return False
        await self._client.add_torrent(
            contents,
            AddTorrentOptions(
                skip_checking=True,
                save_path=self._client_save_path(content_path),
                category=self._seeding_category,
            ),
        )
        return True


def list_content_folders(save_path: str) -> list[str]:
    """Return non-hidden sub-directories of ``save_path`` in name order."""
    try:
        entries = sorted(os.scandir(save_path), key=lambda e: e.name)
    except OSError as exc:
        raise FsError(f"failed to read save path {save_path!r}: {exc}") from exc
    return [entry.path for entry in entries if entry.is_dir() and not entry.name.startswith(".")]


def _collect_images(content_path: str, patterns: Iterable[str]) -> list[str]:
    images: list[str] = []
    for pattern in patterns:
        if os.path.isabs(pattern):
            path = os.path.normpath(pattern)
            matches = glob.glob(path)
        else:
            path = os.path.join(content_path, pattern)
            matches = glob.glob(os.path.join(glob.escape(content_path), pattern))
        for file in sorted(matches) or [path]:
            if file.lower().endswith(IMAGE_EXTS) and os.path.isfile(file) and file not in images:
                images.append(file)
    return images


def _find_cover(content_path: str) -> str | None:
    for ext in IMAGE_EXTS:
        cover = os.path.join(content_path, COVER + ext)
        if os.path.isfile(cover):
            return cover
    return None
