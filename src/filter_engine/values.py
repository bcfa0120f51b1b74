"""Rule values as a tagged union over operator arity.

Wire-level rule values are plain JSON (``None``, a scalar, ``[from, to]`` or
a list). Inside the engine they are lifted into one of four shapes so code
that depends on the shape dispatches on the type instead of probing the raw
value:

- ``NoValue`` for ``none`` arity (``is_set``)
- ``Scalar`` for ``single`` arity (``equals``)
- ``Range`` for ``range`` arity (``between``)
- ``MultiValue`` for ``multi`` arity (``in``)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class Arity(str, Enum):
    """Value shape an operator expects."""

    NONE = "none"
    SINGLE = "single"
    MULTI = "multi"
    RANGE = "range"


@dataclass(frozen=True)
class NoValue:
    def to_wire(self) -> Any:
        return None


@dataclass(frozen=True)
class Scalar:
    value: Any = None

    def to_wire(self) -> Any:
        return self.value


@dataclass(frozen=True)
class Range:
    start: Any = None
    end: Any = None

    def to_wire(self) -> Any:
        return [self.start, self.end]


@dataclass(frozen=True)
class MultiValue:
    values: tuple[Any, ...] = ()

    def to_wire(self) -> Any:
        return list(self.values)


RuleValue = Union[NoValue, Scalar, Range, MultiValue]


def _is_sequence(raw: Any) -> bool:
    return isinstance(raw, (list, tuple))


def coerce_value(arity: Arity, raw: Any) -> RuleValue:
    """Lift a wire value into the shape required by ``arity``.

    Range values also accept the ``{"from": a, "to": b}`` object form.

    Raises:
        ValueError: If the raw value cannot take the required shape.
    """
    if arity == Arity.NONE:
        return NoValue()
    if arity == Arity.SINGLE:
        if _is_sequence(raw) or isinstance(raw, Mapping):
            raise ValueError(f"expected a single value, got {type(raw).__name__}")
        return Scalar(raw)
    if arity == Arity.RANGE:
        if isinstance(raw, Mapping) and "from" in raw and "to" in raw:
            return Range(raw["from"], raw["to"])
        if _is_sequence(raw) and len(raw) == 2:
            return Range(raw[0], raw[1])
        raise ValueError("expected a [from, to] pair")
    if arity == Arity.MULTI:
        if _is_sequence(raw):
            return MultiValue(tuple(raw))
        raise ValueError("expected a list of values")
    raise ValueError(f"unknown arity {arity!r}")


def matches_arity(raw: Any, arity: Arity) -> bool:
    """True when ``raw`` can be lifted into the shape for ``arity``."""
    if arity == Arity.NONE:
        return raw is None
    try:
        coerce_value(arity, raw)
    except ValueError:
        return False
    return True


def arity_of_value(value: RuleValue) -> Arity:
    """Return the arity a lifted value belongs to."""
    if isinstance(value, NoValue):
        return Arity.NONE
    if isinstance(value, Range):
        return Arity.RANGE
    if isinstance(value, MultiValue):
        return Arity.MULTI
    return Arity.SINGLE


def is_blank(value: RuleValue) -> bool:
    """True when a lifted value carries nothing the user entered."""
    if isinstance(value, NoValue):
        return False
    if isinstance(value, Scalar):
        return value.value is None or value.value == ""
    if isinstance(value, Range):
        return value.start is None and value.end is None
    return len(value.values) == 0
