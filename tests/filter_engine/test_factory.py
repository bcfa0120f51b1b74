"""Tests for building engine components from configuration."""

import pytest

from src.config import (
    DiscoveryConfig,
    FilterEngineConfig,
    TreeConfig,
    ValueSearchConfig,
)
from src.filter_engine.factory import (
    configure,
    get_discovery_client,
    get_field_tree_transport,
    get_saved_search_client,
    get_value_search,
)
from src.filter_engine.tree import configure_tree, depth_limit

CONFIG = FilterEngineConfig(
    discovery=DiscoveryConfig(base_url="https://admin.example.com", timeout_seconds=5, root_label="All"),
    value_search=ValueSearchConfig(debounce_ms=150, limit=20),
    tree=TreeConfig(max_depth=3),
)


class TestConfigure:
    @pytest.fixture(autouse=True)
    def _restore_depth(self):
        yield
        configure_tree(TreeConfig())

    def test_applies_tree_depth(self):
        """configure() installs the configured nesting limit."""
        assert configure(CONFIG) is CONFIG
        assert depth_limit() == 3

    def test_loads_config_when_omitted(self, tmp_path, monkeypatch):
        """Without an argument the configuration file is loaded."""
        (tmp_path / "filter_engine.yaml").write_text("tree:\n  max_depth: 5\n")
        monkeypatch.chdir(tmp_path)
        assert configure().tree.max_depth == 5
        assert depth_limit() == 5


class TestComponents:
    def test_field_tree_transport(self):
        """The HTTP transport uses the discovery settings."""
        transport = get_field_tree_transport(CONFIG)
        assert transport._base_url == "https://admin.example.com"
        assert transport._timeout == 5

    def test_saved_search_client(self):
        """The saved-search client shares the discovery base URL."""
        assert get_saved_search_client(CONFIG)._base_url == "https://admin.example.com"

    def test_discovery_client_root_label(self, fake_transport):
        """The root breadcrumb takes the configured label."""
        client = get_discovery_client("users", config=CONFIG, transport=fake_transport)
        assert [b.label for b in client.state.breadcrumbs] == ["All"]

    def test_discovery_client_builds_http_transport(self):
        """Without a transport the client gets an HTTP one from the settings."""
        client = get_discovery_client("users", config=CONFIG)
        assert client.state.breadcrumbs[0].label == "All"

    def test_value_search_settings(self, fake_transport):
        """Debounce and limit come from the value search settings."""
        search = get_value_search("users", ["role"], fake_transport, config=CONFIG)
        assert search._debounce == 0.15
        assert search._limit == 20
