"""Small rule and filter builders for tests."""

from src.filter_engine.models import ComplexFilter, ComplexFilterRule, FilterGroup


def make_rule(field: str, operator: str = "equals", value=None, **kwargs) -> ComplexFilterRule:
    """Build a rule addressed by a bare field name."""
    return ComplexFilterRule(
        field=field,
        field_path=kwargs.pop("field_path", (field,)),
        operator=operator,
        value=value,
        **kwargs,
    )


def make_group(*rules: ComplexFilterRule, logic: str = "AND", groups=(), **kwargs) -> FilterGroup:
    return FilterGroup(logic=logic, rules=rules, groups=tuple(groups), **kwargs)


def make_filter(*rules: ComplexFilterRule, logic: str = "AND", groups=()) -> ComplexFilter:
    """Wrap rules and groups in a root group."""
    return ComplexFilter(root_group=make_group(*rules, logic=logic, groups=groups))
