"""Front matter metadata extraction for content folders.

A metadata file looks like::

    ---
    title: foo
    author: bar
    ---

    any text...

The front matter must sit at the very beginning of the file, which must be
UTF-8 without BOM and use ``\\n`` line breaks.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from ptpublish.config import split_csv
from ptpublish.shared.exceptions import FsError, InvalidFormatError, MetadataParseError

logger = logging.getLogger(__name__)

METADATA_FILE = "metadata.nfo"

TEXT_KEY = "_text"
RAW_KEY = "_meta"
ARRAY_KEYS_KEY = "_array_keys"
IMAGES_KEY = "_images"
COVER_KEY = "_cover"
DRY_RUN_KEY = "_dry_run"

_OPEN_DELIMITER = b"---\n"
_CLOSE_DELIMITER = b"\n---\n"
_WHITESPACE_RE = re.compile(r"\s+")


class Metadata(dict[str, list[str]]):
    """Multi-valued mapping from field name to one or more string values."""

    def first(self, key: str, default: str = "") -> str:
        """Return the first value of ``key``, or ``default`` if absent or empty."""
        values = self.get(key)
        if not values:
            return default
        return values[0]

    def set(self, key: str, value: str) -> None:
        """Replace ``key`` with a single value."""
        self[key] = [value]

    @property
    def title(self) -> str:
        return self.first("title")

    @property
    def tags(self) -> list[str]:
        return self.get("tags", [])

    @property
    def text(self) -> str:
        return self.first(TEXT_KEY)


def parse_metadata(raw: bytes, array_keys: Iterable[str] = ()) -> Metadata:
    """Parse a front matter metadata file's contents.

    Spaces inside keys are converted to ``_``. Keys listed in ``array_keys``
    always yield a list; a string value for such a key is split as CSV.

    Raises:
        InvalidFormatError: If the front matter delimiters are missing.
        MetadataParseError: If the enclosed YAML block cannot be decoded.
    """
    if len(raw) < 10 or not raw.startswith(_OPEN_DELIMITER):
        raise InvalidFormatError("metadata file does not start with a front matter delimiter")
    body = raw[len(_OPEN_DELIMITER) :]
    index = body.find(_CLOSE_DELIMITER)
    if index < 3:
        raise InvalidFormatError("metadata file has no closing front matter delimiter")

    try:
        block = body[:index].decode("utf-8")
        text = body[index + len(_CLOSE_DELIMITER) :].decode("utf-8").strip()
    except UnicodeDecodeError as exc:
        raise InvalidFormatError(f"metadata file is not valid UTF-8: {exc}") from exc

    try:
        decoded = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        raise MetadataParseError(f"failed to decode front matter: {exc}") from exc
    if decoded is None:
        decoded = {}
    if not isinstance(decoded, dict):
        raise MetadataParseError(f"front matter is not a mapping: {type(decoded).__name__}")

    keys = set(array_keys)
    metadata = Metadata()
    for raw_key, value in decoded.items():
        key = _WHITESPACE_RE.sub("_", str(raw_key))
        if isinstance(value, str):
            metadata[key] = split_csv(value) if key in keys else [value]
        elif isinstance(value, list):
            metadata[key] = [_to_str(v) for v in value]
        else:
            metadata[key] = [_to_str(value)]

    metadata.set(TEXT_KEY, text)
    metadata.set(RAW_KEY, block)
    return metadata


def read_metadata_file(path: str | Path, array_keys: Iterable[str] = ()) -> Metadata:
    """Read and parse a metadata file from disk."""
    logger.debug("parse metadata file %s", path)
    try:
        raw = Path(path).read_bytes()
    except OSError as exc:
        raise FsError(f"failed to read metadata file {path}: {exc}") from exc
    return parse_metadata(raw, array_keys)


def merge_overrides(metadata: Metadata, overrides: Mapping[str, list[str]]) -> Metadata:
    """Merge caller-supplied fields on top; same-named fields are replaced."""
    for key, values in overrides.items():
        metadata[key] = list(values)
    return metadata


def _to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, date):
        return value.isoformat()
    return str(value)
