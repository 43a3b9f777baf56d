"""Centralised configuration via Pydantic Settings."""

from __future__ import annotations

import re

from pydantic import BaseModel
from pydantic_settings import BaseSettings

from ptpublish.shared.exceptions import ConfigError

DEFAULT_METADATA_ARRAY_KEYS = "tags,authors,narrators,actors"

_SIZE_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*([kmgtp]?)(i?)b?\s*$", re.IGNORECASE)
_SIZE_EXPONENTS = {"": 0, "k": 1, "m": 2, "g": 3, "t": 4, "p": 5}


class SiteConfig(BaseModel):
    """A tracker site definition."""

    model_config = {"frozen": True}

    name: str
    type: str = "unit3d"
    url: str
    api_key: str = ""
    timeout: int = 30
    category_id: str = ""
    type_id: str = ""
    resolution_id: str = ""
    anonymous: bool = False
    disabled: bool = False


class ClientConfig(BaseModel):
    """A local BitTorrent client definition."""

    model_config = {"frozen": True}

    name: str
    type: str = "qbittorrent"
    url: str
    username: str = "admin"
    password: str = ""
    timeout: int = 30
    disabled: bool = False


class Settings(BaseSettings):
    """Application-wide configuration loaded from environment variables."""

    model_config = {"env_prefix": "PTPUB_", "frozen": True}

    # Sites & clients (JSON lists, e.g. PTPUB_SITES='[{"name": "foo", "url": "..."}]')
    sites: list[SiteConfig] = []
    clients: list[ClientConfig] = []

    # Publish run
    site: str = ""
    client: str = ""
    # Exactly one of content_path / save_path must be set.
    content_path: str = ""
    save_path: str = ""
    dry_run: bool = False
    check_existing: bool = False
    require_metadata: bool = True
    # -1 == no limit
    max_torrents: int = -1
    # -1 == no limit
    min_torrent_size: str = "100MiB"
    # Comma-separated; only folders whose tags contain one of these are published.
    must_tag: str = ""
    metadata_array_keys: str = DEFAULT_METADATA_ARRAY_KEYS
    # Comma-separated file names or glob patterns relative to the content folder.
    images: str = ""
    # Url query string format, e.g. "title=foo&author=bar"
    meta: str = ""
    comment: str = ""
    comment_file: str = ""
    # Move processed folders here. Applies in dry run mode too.
    move_ok_to: str = ""
    # Format: "local_path|client_path;local_path2|client_path2"
    map_save_paths: str = ""
    seeding_category: str = "_seeding"

    # Torrent artifact
    # 0 == let the builder choose
    piece_length: int = 0

    @property
    def min_torrent_size_bytes(self) -> int:
        return parse_size(self.min_torrent_size)

    @property
    def must_tags(self) -> list[str]:
        return split_csv(self.must_tag)

    @property
    def array_keys(self) -> list[str]:
        return split_csv(self.metadata_array_keys)

    @property
    def image_patterns(self) -> list[str]:
        return split_csv(self.images)

    @property
    def path_map_rules(self) -> list[str]:
        return [rule.strip() for rule in self.map_save_paths.split(";") if rule.strip()]


def split_csv(value: str) -> list[str]:
    """Split a comma-separated string into trimmed, non-empty elements."""
    return [part.strip() for part in value.split(",") if part.strip()]


def parse_size(value: str) -> int:
    """Parse a human size such as ``100MiB``, ``1.5GB`` or ``-1`` into bytes.

    Both decimal and binary suffixes use 1024 as base.
    """
    match = _SIZE_RE.match(value)
    if not match:
        raise ConfigError(f"invalid size: {value!r}")
    number, unit, _ = match.groups()
    return int(float(number) * 1024 ** _SIZE_EXPONENTS[unit.lower()])


def get_settings() -> Settings:
    """Factory — allows overriding in tests."""
    return Settings()
