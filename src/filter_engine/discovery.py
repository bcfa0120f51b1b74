"""Lazy, cached, hierarchical field discovery.

The field tree of a module is loaded one level at a time as the user drills
into relation fields. Loaded levels are kept in a ``FieldTreeCache`` keyed by
the dot-joined parent path (``""`` for the root level); the cache belongs to
one module and is cleared wholesale when the module changes.

Concurrency rules (single asyncio loop):

- a cache hit returns without suspending
- concurrent requests for the same path share one in-flight task
- each navigation records its module and target path; a navigation that
  completes after the user has moved elsewhere, or switched modules, is
  discarded

Failures never escape: they are logged, are not cached, and surface as an
empty level plus an error on the navigation state.

Example:
    async with HttpFieldTreeTransport(base_url) as transport:
        client = FieldDiscoveryClient("users", transport, columns=columns)
        state = await client.navigate_to([])
        await client.select(state.children[0], on_select=pick_field)
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import re
from collections.abc import Callable, Sequence
from typing import Any

import httpx
from pydantic import ValidationError

from src.config import DiscoveryConfig
from src.errors import FieldDiscoveryError, FilterEngineError
from src.filter_engine.field_types import FieldTypeResolver, normalize_type
from src.filter_engine.models.field import (
    Breadcrumb,
    ColumnConfig,
    FieldNode,
    NavigationState,
)
from src.filter_engine.transport import FieldTreeTransport

logger = logging.getLogger(__name__)

FieldPath = tuple[str, ...]
OnSelect = Callable[[FieldNode], Any]

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def humanize(segment: str) -> str:
    """Turn a path segment into a display label: ``accessType`` -> ``Access Type``."""
    words = _CAMEL_BOUNDARY.sub(" ", segment).replace("_", " ").split()
    return " ".join(w[:1].upper() + w[1:] for w in words) or segment


class FieldTreeCache:
    """Loaded field-tree levels of one module.

    Injected into the discovery client so that a cache can outlive a single
    client (for example across views of the same module).
    """

    def __init__(self, module: str | None = None) -> None:
        self._module = module
        self._levels: dict[str, tuple[FieldNode, ...]] = {}

    @staticmethod
    def key(path: Sequence[str]) -> str:
        return ".".join(path)

    @property
    def module(self) -> str | None:
        return self._module

    def bind(self, module: str) -> None:
        """Scope the cache to ``module``; a different module clears it."""
        if self._module != module:
            if self._levels:
                logger.debug("field cache: module %s -> %s, clearing", self._module, module)
            self._levels.clear()
            self._module = module

    def get(self, path: Sequence[str]) -> tuple[FieldNode, ...] | None:
        return self._levels.get(self.key(path))

    def put(self, path: Sequence[str], nodes: Sequence[FieldNode]) -> None:
        self._levels[self.key(path)] = tuple(nodes)

    def find_node(self, path: Sequence[str]) -> FieldNode | None:
        """Look up a loaded node by its full path."""
        if not path:
            return None
        siblings = self.get(path[:-1]) or ()
        return next((n for n in siblings if n.name == path[-1]), None)

    def clear(self) -> None:
        self._levels.clear()

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (list, tuple)):
            return False
        return self.key(path) in self._levels

    def __len__(self) -> int:
        return len(self._levels)


class FieldDiscoveryClient:
    """Navigates a module's field tree for field selection.

    Args:
        module: Module whose fields are discovered.
        transport: Field-tree transport (see ``FieldTreeTransport``).
        columns: Column configuration used to label and type fields.
        cache: Optional shared cache; it is re-scoped to ``module``.
        root_label: Label of the root breadcrumb.
    """

    def __init__(
        self,
        module: str,
        transport: FieldTreeTransport,
        *,
        columns: Sequence[ColumnConfig] | None = None,
        cache: FieldTreeCache | None = None,
        root_label: str = "Fields",
    ) -> None:
        self._module = module
        self._transport = transport
        self._resolver = FieldTypeResolver(columns)
        self._cache = cache if cache is not None else FieldTreeCache()
        self._cache.bind(module)
        self._root_label = root_label
        self._inflight: dict[str, asyncio.Task] = {}
        self._target: tuple[str, FieldPath] = (module, ())
        self._state = self._root_state()
        self.last_error: FilterEngineError | None = None

    @classmethod
    def from_config(
        cls,
        module: str,
        transport: FieldTreeTransport,
        config: DiscoveryConfig,
        *,
        columns: Sequence[ColumnConfig] | None = None,
        cache: FieldTreeCache | None = None,
    ) -> "FieldDiscoveryClient":
        return cls(module, transport, columns=columns, cache=cache, root_label=config.root_label)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def module(self) -> str:
        return self._module

    @property
    def cache(self) -> FieldTreeCache:
        return self._cache

    @property
    def state(self) -> NavigationState:
        return self._state

    @property
    def children(self) -> list[FieldNode]:
        return list(self._state.children)

    def _root_state(self) -> NavigationState:
        return NavigationState(breadcrumbs=(Breadcrumb(label=self._root_label, path=()),))

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _enhance(self, node: FieldNode, parent_path: FieldPath) -> FieldNode:
        """Apply column configuration and type resolution to a fetched node."""
        path = tuple(node.path)
        if parent_path and path == (node.name,):
            path = parent_path + (node.name,)

        column = self._resolver.column_for(node.name, path)
        updates: dict[str, Any] = {"path": path}

        if column is not None and column.display and len(path) == 1:
            updates["label"] = column.display

        declared = normalize_type(column.type) if column is not None and column.type else None
        if declared is None:
            declared = normalize_type(node.type)
        if declared is None:
            declared = self._resolver.resolve(node.name, path, has_children=node.has_children)
        updates["type"] = declared.value

        if node.options is None and column is not None and column.options:
            updates["options"] = column.options

        return node.model_copy(update=updates)

    def _parse(self, raw: object, parent_path: FieldPath) -> list[FieldNode]:
        if not isinstance(raw, (list, tuple)):
            raise FieldDiscoveryError(
                self._module,
                list(parent_path),
                f"expected a list of fields, got {type(raw).__name__}",
                malformed=True,
            )
        nodes: list[FieldNode] = []
        for item in raw:
            if not isinstance(item, dict):
                raise FieldDiscoveryError(
                    self._module, list(parent_path), "field entry is not an object", malformed=True
                )
            try:
                node = FieldNode.model_validate(item)
            except ValidationError as e:
                raise FieldDiscoveryError(
                    self._module,
                    list(parent_path),
                    f"invalid field entry: {e.error_count()} error(s)",
                    malformed=True,
                ) from e
            nodes.append(self._enhance(node, parent_path))
        return nodes

    async def _load(self, path: FieldPath) -> tuple[list[FieldNode], FilterEngineError | None]:
        module = self._module
        try:
            raw = await self._transport.fetch_field_tree(module, list(path))
            nodes = self._parse(raw, path)
        except FieldDiscoveryError as e:
            error = FilterEngineError.from_domain_error(e)
            logger.warning("%s", error)
            return [], error
        except (httpx.HTTPError, OSError, TimeoutError) as e:
            error = FilterEngineError.from_code(
                "E-2001", module=module, path=list(path), details=str(e) or type(e).__name__
            )
            logger.warning("%s", error)
            return [], error

        if module != self._module:
            logger.debug("field cache: discarding %s result for previous module %s", path, module)
            return nodes, None
        self._cache.put(path, nodes)
        return nodes, None

    async def _fetch(self, path: FieldPath) -> tuple[list[FieldNode], FilterEngineError | None]:
        cached = self._cache.get(path)
        if cached is not None:
            logger.debug("field cache hit: %s/%s", self._module, FieldTreeCache.key(path))
            return list(cached), None

        key = FieldTreeCache.key(path)
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load(path))
            self._inflight[key] = task
            inflight = self._inflight

            def _done(t: asyncio.Task, key: str = key) -> None:
                if inflight.get(key) is t:
                    del inflight[key]

            task.add_done_callback(_done)
        else:
            logger.debug("field fetch joined in-flight request: %s", key)
        # Shielded so one cancelled caller does not cancel the shared request.
        nodes, error = await asyncio.shield(task)
        return list(nodes), error

    async def fetch_children(self, path: Sequence[str] = ()) -> list[FieldNode]:
        """Return the child fields under ``path`` (empty for the root level).

        Failures return an empty list and set ``last_error``.
        """
        nodes, error = await self._fetch(tuple(path))
        self.last_error = error
        return nodes

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _breadcrumbs(self, path: FieldPath) -> tuple[Breadcrumb, ...]:
        crumbs = [Breadcrumb(label=self._root_label, path=())]
        for i in range(1, len(path) + 1):
            prefix = path[:i]
            node = self._cache.find_node(prefix)
            label = node.label if node is not None and node.label else humanize(prefix[-1])
            crumbs.append(Breadcrumb(label=label, path=prefix))
        return tuple(crumbs)

    def set_module(self, module: str) -> None:
        """Switch modules; clears the cache and returns to the root."""
        if module == self._module:
            return
        logger.info("field discovery: switching module %s -> %s", self._module, module)
        self._module = module
        self._cache.bind(module)
        self._inflight = {}
        self._target = (module, ())
        self._state = self._root_state()
        self.last_error = None

    async def navigate_to(self, path: Sequence[str]) -> NavigationState:
        """Load and show the children of ``path``.

        Returns:
            The navigation state after the move. If another navigation
            started while this one was loading, its state is returned
            unchanged and this result is dropped.
        """
        target = tuple(path)
        token = (self._module, target)
        self._target = token
        self._state = self._state.model_copy(update={"loading": True})

        nodes, error = await self._fetch(target)

        if self._target != token:
            logger.debug(
                "discarding stale navigation to %s/%s", token[0], FieldTreeCache.key(target)
            )
            return self._state

        self.last_error = error
        self._state = NavigationState(
            path=target,
            breadcrumbs=self._breadcrumbs(target),
            children=tuple(nodes),
            loading=False,
            error=error is not None,
            error_message=error.message if error is not None else None,
        )
        return self._state

    async def go_back(self) -> NavigationState:
        """Navigate to the parent level; no-op at the root."""
        if not self._state.path:
            return self._state
        return await self.navigate_to(self._state.path[:-1])

    async def navigate_to_breadcrumb(self, index: int) -> NavigationState:
        crumbs = self._state.breadcrumbs
        if not 0 <= index < len(crumbs):
            logger.debug("breadcrumb index %d out of range", index)
            return self._state
        return await self.navigate_to(crumbs[index].path)

    def search(self, term: str) -> list[FieldNode]:
        """Filter the current children by label or name (case-insensitive)."""
        needle = (term or "").strip().casefold()
        children = list(self._state.children)
        if not needle:
            return children
        return [
            n for n in children
            if needle in n.label.casefold() or needle in n.name.casefold()
        ]

    async def select(self, node: FieldNode, on_select: OnSelect) -> FieldNode | None:
        """Drill into a relation node, or hand a leaf to ``on_select``.

        Returns:
            The selected leaf, or None when the selection navigated.
        """
        if node.has_children:
            await self.navigate_to(node.path)
            return None
        result = on_select(node)
        if inspect.isawaitable(result):
            await result
        return node
