"""Detect an equivalent release already present on the site."""

from __future__ import annotations

import logging
import re

from ptpublish.publisher.interfaces import Site
from ptpublish.publisher.metadata import Metadata
from ptpublish.shared.exceptions import SiteError

logger = logging.getLogger(__name__)

NUMBER_KEY = "number"


class ExistingContentChecker:
    """Search the site by catalog number and whole-word match the results."""

    def __init__(self, site: Site, *, enabled: bool = True) -> None:
        self._site = site
        self._enabled = enabled

    def applies(self, metadata: Metadata) -> bool:
        return self._enabled and bool(metadata.first(NUMBER_KEY))

    async def check(self, metadata: Metadata) -> str | None:
        """Return the id of the first matching site torrent, or ``None``."""
        if not self.applies(metadata):
            return None
        number = metadata.first(NUMBER_KEY)
        try:
            torrents = await self._site.search(number)
        except SiteError as exc:
            raise SiteError(f"failed to search site torrents to check existing: {exc}") from exc

        pattern = re.compile(r"\b" + re.escape(number) + r"\b")
        for torrent in torrents:
            if pattern.search(torrent.name) or pattern.search(torrent.description):
                logger.info("found existing torrent %s on %s for number %r", torrent.id, self._site.name, number)
                return torrent.id
        logger.debug("no existing torrent on %s for number %r (%d candidates)", self._site.name, number, len(torrents))
        return None
