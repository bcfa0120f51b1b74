"""Builds engine components from loaded configuration.

Callers hold one ``FilterEngineConfig`` (usually from ``load_config``) and
ask the factory for components instead of threading individual settings
through constructors.
"""

from collections.abc import Sequence

from src.config import FilterEngineConfig, configure_logging, load_config
from src.filter_engine.discovery import FieldDiscoveryClient, FieldTreeCache
from src.filter_engine.models.field import ColumnConfig
from src.filter_engine.transport import (
    FieldTreeTransport,
    HttpFieldTreeTransport,
    HttpSavedSearchClient,
)
from src.filter_engine.tree import configure_tree
from src.filter_engine.value_search import FieldValueSearch


def configure(config: FilterEngineConfig | None = None) -> FilterEngineConfig:
    """Apply process-wide settings (logging, tree nesting limit).

    Args:
        config: Loaded configuration; ``load_config()`` when omitted.

    Returns:
        The configuration that was applied.
    """
    config = config or load_config()
    configure_logging(config.logging)
    configure_tree(config.tree)
    return config


def get_field_tree_transport(config: FilterEngineConfig | None = None) -> HttpFieldTreeTransport:
    config = config or load_config()
    return HttpFieldTreeTransport.from_config(config.discovery)


def get_saved_search_client(config: FilterEngineConfig | None = None) -> HttpSavedSearchClient:
    config = config or load_config()
    return HttpSavedSearchClient.from_config(config.discovery)


def get_discovery_client(
    module: str,
    *,
    config: FilterEngineConfig | None = None,
    transport: FieldTreeTransport | None = None,
    columns: Sequence[ColumnConfig] | None = None,
    cache: FieldTreeCache | None = None,
) -> FieldDiscoveryClient:
    """Create a discovery client for ``module``.

    Without an explicit transport an HTTP transport is built from the
    discovery settings; it must be entered with ``async with`` before use.
    """
    config = config or load_config()
    if transport is None:
        transport = get_field_tree_transport(config)
    return FieldDiscoveryClient.from_config(
        module, transport, config.discovery, columns=columns, cache=cache
    )


def get_value_search(
    module: str,
    field_path: Sequence[str],
    transport: FieldTreeTransport,
    *,
    config: FilterEngineConfig | None = None,
) -> FieldValueSearch:
    config = config or load_config()
    return FieldValueSearch.from_config(transport, module, field_path, config.value_search)
