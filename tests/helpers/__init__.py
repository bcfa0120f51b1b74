"""Test helpers for filter engine tests."""

from tests.helpers.builders import make_filter, make_group, make_rule
from tests.helpers.fake_transport import FakeFieldTreeTransport

__all__ = ["FakeFieldTreeTransport", "make_filter", "make_group", "make_rule"]
