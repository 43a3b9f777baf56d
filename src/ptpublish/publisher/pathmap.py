"""Local to client path translation."""

from __future__ import annotations

from collections.abc import Iterable

from ptpublish.shared.exceptions import ConfigError


class PathMapper:
    """Ordered list of (local prefix, client prefix) rules.

    The first rule in declared order whose prefix matches wins; put more
    specific prefixes first.
    """

    def __init__(self, rules: Iterable[tuple[str, str]]) -> None:
        self._rules = [(_normalize(local), _normalize(client)) for local, client in rules]

    @classmethod
    def from_rules(cls, rules: Iterable[str]) -> PathMapper:
        """Build a mapper from ``"local_path|client_path"`` strings."""
        parsed: list[tuple[str, str]] = []
        for rule in rules:
            local, sep, client = rule.partition("|")
            if not sep or not local.strip() or not client.strip():
                raise ConfigError(f"invalid path map rule {rule!r}, expected 'local_path|client_path'")
            parsed.append((local.strip(), client.strip()))
        return cls(parsed)

    def map(self, path: str) -> tuple[str, bool]:
        """Translate ``path``; returns ``(path, False)`` when no rule matches."""
        normalized = _normalize(path)
        for local, client in self._rules:
            if normalized == local:
                return client, True
            prefix = local if local.endswith("/") else local + "/"
            if normalized.startswith(prefix):
                rest = normalized[len(prefix) :]
                return (client if client.endswith("/") else client + "/") + rest, True
        return path, False


def _normalize(path: str) -> str:
    path = path.replace("\\", "/")
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path
