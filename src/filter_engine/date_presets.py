"""Relative date shortcuts used by the ``preset`` operator.

A preset rule stores the preset key (``"last_7_days"``) as its value; the
concrete date range is only computed when the filter is serialized for a
request, against a reference "today".
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, timedelta

# Value seeded into a rule when its operator changes to ``preset``.
PRESET_SENTINEL = "today"


def _start_of_week(day: date) -> date:
    # Weeks start on Sunday.
    return day - timedelta(days=(day.weekday() + 1) % 7)


def _end_of_month(day: date) -> date:
    first_next = (day.replace(day=1) + timedelta(days=32)).replace(day=1)
    return first_next - timedelta(days=1)


@dataclass(frozen=True)
class DatePreset:
    """A named relative date range."""

    value: str
    label: str
    compute: Callable[[date], tuple[date, date]]

    def resolve(self, today: date) -> tuple[date, date]:
        """Return the inclusive (start, end) range relative to ``today``."""
        return self.compute(today)


def _last_week(today: date) -> tuple[date, date]:
    start = _start_of_week(today - timedelta(days=7))
    return start, start + timedelta(days=6)


def _last_month(today: date) -> tuple[date, date]:
    end = today.replace(day=1) - timedelta(days=1)
    return end.replace(day=1), end


DATE_PRESETS: tuple[DatePreset, ...] = (
    DatePreset("today", "Today", lambda d: (d, d)),
    DatePreset(
        "yesterday",
        "Yesterday",
        lambda d: (d - timedelta(days=1), d - timedelta(days=1)),
    ),
    DatePreset("last_7_days", "Last 7 days", lambda d: (d - timedelta(days=7), d)),
    DatePreset("last_30_days", "Last 30 days", lambda d: (d - timedelta(days=30), d)),
    DatePreset(
        "this_week",
        "This week",
        lambda d: (_start_of_week(d), _start_of_week(d) + timedelta(days=6)),
    ),
    DatePreset("last_week", "Last week", _last_week),
    DatePreset("this_month", "This month", lambda d: (d.replace(day=1), _end_of_month(d))),
    DatePreset("last_month", "Last month", _last_month),
    DatePreset(
        "this_year",
        "This year",
        lambda d: (date(d.year, 1, 1), date(d.year, 12, 31)),
    ),
    DatePreset(
        "last_year",
        "Last year",
        lambda d: (date(d.year - 1, 1, 1), date(d.year - 1, 12, 31)),
    ),
)

_PRESETS_BY_VALUE: dict[str, DatePreset] = {p.value: p for p in DATE_PRESETS}


def get_preset(value: object) -> DatePreset | None:
    """Look up a preset by its key."""
    if not isinstance(value, str):
        return None
    return _PRESETS_BY_VALUE.get(value)


def resolve_preset(value: object, today: date | None = None) -> tuple[date, date] | None:
    """Resolve a preset key to a date range, or None for unknown keys."""
    preset = get_preset(value)
    if preset is None:
        return None
    return preset.resolve(today or date.today())
