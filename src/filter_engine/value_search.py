"""Debounced option search for multi-value (``in`` / ``not_in``) pickers."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

import httpx
from pydantic import ValidationError

from src.config import ValueSearchConfig
from src.errors import FieldDiscoveryError, FilterEngineError
from src.filter_engine.models.field import FieldOption
from src.filter_engine.transport import FieldTreeTransport

logger = logging.getLogger(__name__)


def _to_option(item: Any) -> FieldOption:
    if isinstance(item, dict):
        return FieldOption.model_validate(item)
    return FieldOption(value=item, label=str(item))


class FieldValueSearch:
    """Searches the distinct values of one field as the user types.

    ``schedule(term)`` restarts the debounce window. Every search carries a
    generation number; only the newest generation may update ``results``, so
    a slow response for an old term never overwrites a newer one. Failed
    searches keep the previous results and set ``error``.
    """

    def __init__(
        self,
        transport: FieldTreeTransport,
        module: str,
        field_path: Sequence[str],
        *,
        debounce: float = 0.3,
        limit: int = 50,
    ) -> None:
        self._transport = transport
        self._module = module
        self._field_path = tuple(field_path)
        self._debounce = debounce
        self._limit = limit
        self._generation = 0
        self._pending: asyncio.Task | None = None
        self._timer: asyncio.Future | None = None
        self.results: list[FieldOption] = []
        self.term: str | None = None
        self.error: FilterEngineError | None = None

    @classmethod
    def from_config(
        cls,
        transport: FieldTreeTransport,
        module: str,
        field_path: Sequence[str],
        config: ValueSearchConfig,
    ) -> "FieldValueSearch":
        return cls(
            transport,
            module,
            field_path,
            debounce=config.debounce_seconds,
            limit=config.limit,
        )

    @property
    def generation(self) -> int:
        return self._generation

    def schedule(self, term: str) -> asyncio.Task:
        """Start a search for ``term`` after the debounce window.

        A search still waiting out its window is dropped; one already
        fetching runs on and is discarded by its generation.
        """
        if self._timer is not None:
            self._timer.cancel()
        self._generation += 1
        self._timer = asyncio.ensure_future(asyncio.sleep(self._debounce))
        self._pending = asyncio.ensure_future(
            self._debounced(self._timer, term, self._generation)
        )
        return self._pending

    async def search_now(self, term: str) -> list[FieldOption]:
        """Search immediately, bypassing the debounce window."""
        self._generation += 1
        await self._run(term, self._generation)
        return self.results

    def cancel(self) -> None:
        """Drop any pending or in-flight search."""
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def wait(self) -> None:
        """Wait for the most recently scheduled search to settle."""
        task = self._pending
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise

    async def _debounced(self, timer: asyncio.Future, term: str, generation: int) -> None:
        await asyncio.wait((timer,))
        if timer.cancelled():
            logger.debug("value search for %r superseded while debouncing", term)
            return
        await self._run(term, generation)

    async def _run(self, term: str, generation: int) -> None:
        if generation != self._generation:
            return

        try:
            raw = await self._transport.fetch_field_values(
                self._module, self._field_path, term, self._limit
            )
            options = [_to_option(item) for item in raw]
        except FieldDiscoveryError as e:
            self._fail(generation, e.reason)
            return
        except (ValidationError, httpx.HTTPError, OSError, TimeoutError) as e:
            self._fail(generation, str(e) or type(e).__name__)
            return

        if generation != self._generation:
            logger.debug("dropping stale value search for %r", term)
            return
        self.results = options
        self.term = term
        self.error = None

    def _fail(self, generation: int, reason: str) -> None:
        if generation != self._generation:
            return
        self.error = FilterEngineError.from_code(
            "E-2003", path=list(self._field_path), details=reason
        )
        logger.warning("%s", self.error)
