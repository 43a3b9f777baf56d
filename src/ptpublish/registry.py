"""Name-based lookup of configured sites and clients."""

from __future__ import annotations

import logging
from collections.abc import Callable

from ptpublish.clients.qbittorrent import QBitClient
from ptpublish.config import ClientConfig, Settings, SiteConfig
from ptpublish.publisher.interfaces import Site, TorrentClient
from ptpublish.shared.exceptions import ConfigError
from ptpublish.sites.unit3d import Unit3dSite

logger = logging.getLogger(__name__)

SITE_TYPES: dict[str, Callable[[SiteConfig], Site]] = {
    "unit3d": Unit3dSite.from_config,
}

CLIENT_TYPES: dict[str, Callable[[ClientConfig], TorrentClient]] = {
    "qbittorrent": QBitClient.from_config,
}


class Registry:
    """Read-through cache of site and client instances.

    Construct once at startup and pass to whoever needs lookups by name.
    """

    def __init__(self, settings: Settings) -> None:
        self._site_configs = _index(settings.sites, "site")
        self._client_configs = _index(settings.clients, "client")
        self._sites: dict[str, Site] = {}
        self._clients: dict[str, TorrentClient] = {}

    def site(self, name: str) -> Site:
        if name not in self._sites:
            config = self._site_configs.get(name)
            if config is None:
                raise ConfigError(f"site {name!r} is not configured")
            if config.disabled:
                raise ConfigError(f"site {name!r} is disabled")
            factory = SITE_TYPES.get(config.type)
            if factory is None:
                raise ConfigError(f"site {name!r} has unsupported type {config.type!r}")
            self._sites[name] = factory(config)
            logger.debug("created %s site %s", config.type, name)
        return self._sites[name]

    def client(self, name: str) -> TorrentClient:
        if name not in self._clients:
            config = self._client_configs.get(name)
            if config is None:
                raise ConfigError(f"client {name!r} is not configured")
            if config.disabled:
                raise ConfigError(f"client {name!r} is disabled")
            factory = CLIENT_TYPES.get(config.type)
            if factory is None:
                raise ConfigError(f"client {name!r} has unsupported type {config.type!r}")
            self._clients[name] = factory(config)
            logger.debug("created %s client %s", config.type, name)
        return self._clients[name]


def _index(configs: list[SiteConfig] | list[ClientConfig], kind: str) -> dict:
    indexed: dict = {}
    for config in configs:
        if config.name in indexed:
            raise ConfigError(f"duplicate {kind} name {config.name!r}")
        indexed[config.name] = config
    return indexed
