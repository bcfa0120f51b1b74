"""In-memory field-tree transport for discovery and value-search tests."""

import asyncio
from collections.abc import Sequence

from src.errors import FieldDiscoveryError


class FakeFieldTreeTransport:
    """Serves canned field-tree levels and records every request.

    Args:
        tree: Raw node payloads keyed by dotted parent path ("" = root).
        values: Option payloads keyed by dotted field path.
        delays: Per-path latency in seconds, keyed like ``tree``.
        fail_paths: Parent paths whose fetch raises FieldDiscoveryError.
        malformed_paths: Parent paths that return an unparsable payload.
    """

    def __init__(
        self,
        tree: dict[str, list[dict]] | None = None,
        values: dict[str, list[dict]] | None = None,
        *,
        delays: dict[str, float] | None = None,
        fail_paths: Sequence[str] = (),
        malformed_paths: Sequence[str] = (),
    ):
        self.tree = tree or {}
        self.values = values or {}
        self.delays = delays or {}
        self.fail_paths = set(fail_paths)
        self.malformed_paths = set(malformed_paths)
        self.tree_calls: list[tuple[str, tuple[str, ...]]] = []
        self.value_calls: list[str] = []
        self.value_delay = 0.0
        self.fail_values = False

    async def fetch_field_tree(self, module: str, parent_path: Sequence[str]) -> list[dict]:
        key = ".".join(parent_path)
        self.tree_calls.append((module, tuple(parent_path)))
        delay = self.delays.get(key, 0.0)
        if delay:
            await asyncio.sleep(delay)
        if key in self.fail_paths:
            raise FieldDiscoveryError(module, list(parent_path), "HTTP 502")
        if key in self.malformed_paths:
            return [{"label": "no name"}]
        return [dict(node) for node in self.tree.get(key, [])]

    async def fetch_field_values(
        self,
        module: str,
        field_path: Sequence[str],
        search: str = "",
        limit: int = 50,
    ) -> list[dict]:
        self.value_calls.append(search)
        if self.value_delay:
            await asyncio.sleep(self.value_delay)
        if self.fail_values:
            raise FieldDiscoveryError(module, list(field_path), "HTTP 500")
        options = self.values.get(".".join(field_path), [])
        needle = search.casefold()
        return [o for o in options if needle in str(o.get("label", "")).casefold()][:limit]
