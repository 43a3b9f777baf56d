"""Settings-driven entry point for a publish batch."""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from pathlib import Path
from urllib.parse import parse_qs

from ptpublish.config import Settings, get_settings
from ptpublish.publisher.artifact import ArtifactManager
from ptpublish.publisher.existing import ExistingContentChecker
from ptpublish.publisher.interfaces import TorrentClient
from ptpublish.publisher.pathmap import PathMapper
from ptpublish.publisher.service import PublishService, list_content_folders
from ptpublish.publisher.torrent_builder import TorfTorrentBuilder
from ptpublish.registry import Registry
from ptpublish.shared.exceptions import ConfigError, FsError, PtpublishError
from ptpublish.shared.models import ItemResult

logger = logging.getLogger(__name__)


async def run(settings: Settings, registry: Registry | None = None) -> int:
    """Publish the configured content folder(s) and return an exit code.

    Returns:
        ``0`` if every item succeeded, ``1`` otherwise.
    """
    if bool(settings.content_path) == bool(settings.save_path):
        raise ConfigError("exactly one of content_path and save_path must be set")
    if not settings.site:
        raise ConfigError("site must be set")

    overrides = build_overrides(settings)
    path_mapper = PathMapper.from_rules(settings.path_map_rules) if settings.path_map_rules else None
    registry = registry or Registry(settings)

    site = registry.site(settings.site)
    await site.get_status()
    client: TorrentClient | None = None
    if settings.client:
        client = registry.client(settings.client)
        await client.health_check()

    if settings.save_path:
        content_paths = list_content_folders(settings.save_path)
    else:
        content_paths = [settings.content_path]

    if settings.move_ok_to:
        try:
            os.makedirs(settings.move_ok_to, exist_ok=True)
        except OSError as exc:
            raise FsError(f"move_ok_to dir {settings.move_ok_to!r} does not exist and can't be created: {exc}") from exc

    builder = TorfTorrentBuilder(
        min_size=settings.min_torrent_size_bytes,
        piece_length=settings.piece_length,
    )
    service = PublishService(
        site=site,
        artifacts=ArtifactManager(builder),
        checker=ExistingContentChecker(site, enabled=settings.check_existing),
        client=client,
        path_mapper=path_mapper,
        overrides=overrides,
        require_metadata=settings.require_metadata,
        array_keys=settings.array_keys,
        must_tags=settings.must_tags,
        image_patterns=settings.image_patterns,
        move_ok_to=settings.move_ok_to,
        dry_run=settings.dry_run,
        seeding_category=settings.seeding_category,
        max_torrents=settings.max_torrents,
    )

    logger.info("publishing %d content folder(s) to %s", len(content_paths), site.name)
    summary = await service.run_batch(content_paths, report=_print_result)
    if not summary.ok:
        logger.error("%d errors", summary.errors)
        return 1
    return 0


def build_overrides(settings: Settings) -> dict[str, list[str]]:
    """Collect metadata fields set through ``meta`` and ``comment`` settings."""
    if settings.comment and settings.comment_file:
        raise ConfigError("comment and comment_file are not compatible")
    comment = settings.comment
    if settings.comment_file:
        try:
            comment = Path(settings.comment_file).read_text(encoding="utf-8")
        except OSError as exc:
            raise FsError(f"failed to read comment file: {exc}") from exc
    comment = comment.strip()

    overrides: dict[str, list[str]] = {}
    if settings.meta:
        try:
            overrides.update(parse_qs(settings.meta, keep_blank_values=True, strict_parsing=True))
        except ValueError as exc:
            raise ConfigError(f"invalid meta value {settings.meta!r}: {exc}") from exc
    if comment:
        overrides["comment"] = [comment]
    return overrides


def _print_result(result: ItemResult) -> None:
    print(result.render(), flush=True)


def main() -> None:
    """Entry point for ``python -m ptpublish.publisher.worker``."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    settings = get_settings()
    try:
        code = asyncio.run(run(settings))
    except PtpublishError as exc:
        logger.error("publish failed: %s", exc)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
