"""Root-level pytest fixtures for all tests.

Provides shared fixtures for filter engine tests including:
- A sample "users" field tree and its column configuration
- A fake field-tree transport that records requests
"""

import pytest

from src.filter_engine.models import ColumnConfig
from tests.helpers import FakeFieldTreeTransport

# ============================================================================
# Pytest Markers
# ============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests requiring external services"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests that take a long time to run"
    )


# ============================================================================
# Field Tree Fixtures
# ============================================================================

USERS_FIELD_TREE = {
    "": [
        {"name": "status", "label": "status", "type": "", "path": ["status"], "hasChildren": False},
        {"name": "createdAt", "path": ["createdAt"]},
        {"name": "isSuperAdmin", "path": ["isSuperAdmin"]},
        {"name": "email", "type": "string", "path": ["email"]},
        {"name": "tenant", "label": "Tenant", "type": "object", "path": ["tenant"], "hasChildren": True},
    ],
    "tenant": [
        {"name": "name", "label": "Name", "type": "string", "path": ["tenant", "name"]},
        {"name": "plan", "label": "Plan", "path": ["tenant", "plan"]},
        {"name": "owner", "label": "Owner", "path": ["tenant", "owner"], "hasChildren": True},
    ],
    "tenant.owner": [
        {"name": "email", "label": "Email", "type": "string", "path": ["tenant", "owner", "email"]},
    ],
}


@pytest.fixture
def users_tree() -> dict[str, list[dict]]:
    """Raw field-tree payloads keyed by dotted parent path."""
    return {key: [dict(node) for node in nodes] for key, nodes in USERS_FIELD_TREE.items()}


@pytest.fixture
def users_columns() -> list[ColumnConfig]:
    """Column configuration for the users module."""
    return [
        ColumnConfig(
            field="status",
            display="Status",
            type="select",
            options=[{"value": "ACTIVE", "label": "Active"}, {"value": "SUSPENDED", "label": "Suspended"}],
            popular=True,
        ),
        ColumnConfig(field="isSuperAdmin", display="Super Admin", type="boolean", popular=True),
        ColumnConfig(field="createdAt", display="Created", type="datetime"),
        ColumnConfig(field="email", display="Email Address"),
    ]


@pytest.fixture
def fake_transport(users_tree) -> FakeFieldTreeTransport:
    """Fake transport serving the users field tree."""
    return FakeFieldTreeTransport(users_tree)

