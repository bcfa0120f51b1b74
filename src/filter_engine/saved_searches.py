"""Helpers around saved searches.

The saved-search store itself is external (see ``HttpSavedSearchClient``);
these helpers order searches, recognise when the active filter already
matches a saved one, and load searches without letting a store outage
reach the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from src.errors import FilterEngineError, SavedSearchStoreError
from src.filter_engine.merge import group_signature
from src.filter_engine.models.filter import ComplexFilter
from src.filter_engine.models.saved_search import SavedSearch
from src.filter_engine.tree import normalize

logger = logging.getLogger(__name__)


def favorites_first(searches: Iterable[SavedSearch]) -> list[SavedSearch]:
    """Favorites first, then by name (case-insensitive); stable otherwise."""
    return sorted(searches, key=lambda s: (not s.is_favorite, s.name.casefold()))


def filter_for(search: SavedSearch) -> ComplexFilter | None:
    """Return the normalized filter stored on a saved search."""
    return normalize(search.filter)


def filters_match(a: ComplexFilter | None, b: ComplexFilter | None) -> bool:
    """Structural equality ignoring rule and group ids and labels."""
    a, b = normalize(a), normalize(b)
    if a is None or b is None:
        return a is b
    return group_signature(a.root_group) == group_signature(b.root_group)


def find_matching_search(
    searches: Sequence[SavedSearch],
    complex_filter: ComplexFilter | None,
) -> SavedSearch | None:
    """Find the saved search whose filter equals ``complex_filter``."""
    if normalize(complex_filter) is None:
        return None
    return next((s for s in searches if filters_match(s.filter, complex_filter)), None)


async def load_saved_searches(client, module: str) -> list[SavedSearch]:
    """List a module's saved searches, favorites first.

    Args:
        client: Object with an async ``list_searches(module)`` method, such
            as ``HttpSavedSearchClient``.
        module: Module name.

    Returns:
        The searches, or an empty list when the store is unavailable.
    """
    try:
        searches = await client.list_searches(module)
    except SavedSearchStoreError as e:
        logger.warning("%s", FilterEngineError.from_domain_error(e))
        return []
    return favorites_first(searches)
