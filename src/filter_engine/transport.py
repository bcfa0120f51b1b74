"""HTTP transports for the filter endpoints.

Thin wrappers around httpx that talk to the per-module filter API:

- ``GET  /api/filters/{module}/field-tree?parent=a.b``  -> ``{fields: [...]}``
- ``POST /api/filters/{module}/field-values``           -> ``{data: [...]}``
- ``/api/filters/{module}/saved-searches``              (list/save/delete/favorite)

Transports raise domain errors (``FieldDiscoveryError``,
``SavedSearchStoreError``); callers such as the discovery client catch them
at their own boundary. Both clients are async context managers; a client
can also be handed a pre-built ``httpx.AsyncClient``.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from typing import Any, Protocol

import httpx

from src.config import DiscoveryConfig
from src.errors import FieldDiscoveryError, SavedSearchStoreError
from src.filter_engine.models.saved_search import SavedSearch
from src.filter_engine.serialization import to_payload

logger = logging.getLogger(__name__)

_API_KEY_ENV = "FILTER_ENGINE_API_KEY"


class FieldTreeTransport(Protocol):
    """Interface the discovery client and value search depend on."""

    async def fetch_field_tree(
        self, module: str, parent_path: Sequence[str]
    ) -> list[dict[str, Any]]:
        """Return raw child-field payloads under ``parent_path``."""
        ...

    async def fetch_field_values(
        self,
        module: str,
        field_path: Sequence[str],
        search: str = "",
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """Return ``{value, label}`` option payloads for a field."""
        ...


class _BaseHttpClient:
    """Shared httpx.AsyncClient lifecycle."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        defaults = DiscoveryConfig()
        self._base_url = base_url or defaults.base_url
        self._timeout = timeout if timeout is not None else defaults.timeout_seconds
        self._client = client
        self._owns_client = client is None
        self._api_key = os.environ.get(_API_KEY_ENV, "").strip()

    @classmethod
    def from_config(cls, config: DiscoveryConfig):
        return cls(config.base_url, timeout=config.timeout_seconds)

    async def __aenter__(self):
        """Open the httpx async client unless one was injected."""
        if self._client is None:
            headers = {}
            if self._api_key:
                headers["X-API-Key"] = self._api_key
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=headers,
            )
            self._owns_client = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Close the httpx async client if this object opened it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(f"{type(self).__name__} used outside 'async with'")
        return self._client


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(body, dict):
        return str(body.get("error") or body.get("detail") or f"HTTP {resp.status_code}")
    return f"HTTP {resp.status_code}"


class HttpFieldTreeTransport(_BaseHttpClient):
    """Field-tree and field-values endpoints over HTTP."""

    async def fetch_field_tree(
        self, module: str, parent_path: Sequence[str]
    ) -> list[dict[str, Any]]:
        """Fetch one level of the field tree.

        Args:
            module: Module name, e.g. ``"users"``.
            parent_path: Path of the parent node; empty for the root level.

        Returns:
            Raw field payloads (camelCase dicts).

        Raises:
            FieldDiscoveryError: On transport failures, non-2xx responses or
                a payload without a ``fields`` list (``malformed=True``).
        """
        params = {"parent": ".".join(parent_path)} if parent_path else None
        try:
            resp = await self._http().get(f"/api/filters/{module}/field-tree", params=params)
        except httpx.HTTPError as e:
            raise FieldDiscoveryError(module, list(parent_path), str(e) or type(e).__name__) from e

        if resp.status_code >= 400:
            raise FieldDiscoveryError(module, list(parent_path), _error_detail(resp))
        try:
            body = resp.json()
        except ValueError as e:
            raise FieldDiscoveryError(
                module, list(parent_path), "response is not JSON", malformed=True
            ) from e

        if not isinstance(body, dict):
            raise FieldDiscoveryError(
                module, list(parent_path), "response is not an object", malformed=True
            )
        if body.get("success") is False:
            raise FieldDiscoveryError(module, list(parent_path), _error_detail(resp))
        fields = body.get("fields")
        if not isinstance(fields, list):
            raise FieldDiscoveryError(
                module, list(parent_path), "missing 'fields' list", malformed=True
            )
        logger.debug("field-tree %s/%s: %d node(s)", module, ".".join(parent_path), len(fields))
        return fields

    async def fetch_field_values(
        self,
        module: str,
        field_path: Sequence[str],
        search: str = "",
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """Search distinct values of a field for multi-value pickers.

        Raises:
            FieldDiscoveryError: On transport failures or malformed payloads.
        """
        payload = {"fieldPath": list(field_path), "search": search, "limit": limit}
        try:
            resp = await self._http().post(f"/api/filters/{module}/field-values", json=payload)
        except httpx.HTTPError as e:
            raise FieldDiscoveryError(module, list(field_path), str(e) or type(e).__name__) from e

        if resp.status_code >= 400:
            raise FieldDiscoveryError(module, list(field_path), _error_detail(resp))
        try:
            body = resp.json()
        except ValueError as e:
            raise FieldDiscoveryError(
                module, list(field_path), "response is not JSON", malformed=True
            ) from e
        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, list):
            raise FieldDiscoveryError(
                module, list(field_path), "missing 'data' list", malformed=True
            )
        return data


class HttpSavedSearchClient(_BaseHttpClient):
    """Client for the external saved-search store."""

    def _path(self, module: str, search_id: str | None = None) -> str:
        base = f"/api/filters/{module}/saved-searches"
        return f"{base}/{search_id}" if search_id else base

    def _check(self, module: str, resp: httpx.Response) -> Any:
        """Raise on non-2xx responses; return the decoded JSON body."""
        if resp.status_code >= 400:
            raise SavedSearchStoreError(module, _error_detail(resp), resp.status_code)
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise SavedSearchStoreError(module, "response is not JSON", resp.status_code) from e

    @staticmethod
    def _parse(item: dict[str, Any]) -> SavedSearch:
        data = dict(item)
        # The store names the descriptor "complexFilter".
        if "filter" not in data and "complexFilter" in data:
            data["filter"] = data.pop("complexFilter")
        return SavedSearch.model_validate(data)

    async def list_searches(self, module: str) -> list[SavedSearch]:
        """Return the module's saved searches; invalid entries are skipped."""
        try:
            resp = await self._http().get(self._path(module))
        except httpx.HTTPError as e:
            raise SavedSearchStoreError(module, str(e) or type(e).__name__) from e
        body = self._check(module, resp)
        items = body.get("data", []) if isinstance(body, dict) else body
        searches: list[SavedSearch] = []
        for item in items or []:
            try:
                searches.append(self._parse(item))
            except (TypeError, ValueError) as e:
                logger.warning("skipping invalid saved search in %s: %s", module, e)
        return searches

    async def save_search(self, module: str, search: SavedSearch) -> SavedSearch:
        """Create a saved search; returns the stored record."""
        body = {
            "name": search.name,
            "complexFilter": to_payload(search.filter),
            "isFavorite": search.is_favorite,
        }
        try:
            resp = await self._http().post(self._path(module), json=body)
        except httpx.HTTPError as e:
            raise SavedSearchStoreError(module, str(e) or type(e).__name__) from e
        return self._parse(self._check(module, resp))

    async def delete_search(self, module: str, search_id: str) -> None:
        """Delete a saved search; a missing record is not an error."""
        try:
            resp = await self._http().delete(self._path(module, search_id))
        except httpx.HTTPError as e:
            raise SavedSearchStoreError(module, str(e) or type(e).__name__) from e
        # 404 is acceptable: already gone
        if resp.status_code != 404:
            self._check(module, resp)

    async def toggle_favorite(self, module: str, search_id: str) -> SavedSearch:
        """Flip the favorite flag of a saved search."""
        try:
            resp = await self._http().patch(f"{self._path(module, search_id)}/favorite")
        except httpx.HTTPError as e:
            raise SavedSearchStoreError(module, str(e) or type(e).__name__) from e
        return self._parse(self._check(module, resp))
