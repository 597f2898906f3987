"""
Client-side filtering and sorting of records.

A filter maps field names to either a scalar (equality) or a collection
of scalars (membership); every condition must hold. An ordering is a field
name, optionally prefixed with "-" for descending. Sort keys compare by
their string form, missing values as "", and equal keys keep input order.
"""

from typing import Any, Iterable, Mapping, Sequence, TypeVar

from debtdesk.domain.models.record import FIELD_ALIASES, Record

R = TypeVar("R", Record, dict)

MEMBERSHIP_TYPES = (set, frozenset, list, tuple)


def _field_value(item: Record | Mapping[str, Any], name: str) -> Any:
    if isinstance(item, Record):
        return item.get(name)
    name = FIELD_ALIASES.get(name, name)
    return item.get(name)


def is_membership(condition: Any) -> bool:
    return isinstance(condition, MEMBERSHIP_TYPES)


def matches_filters(item: Record | Mapping[str, Any], filters: Mapping[str, Any] | None) -> bool:
    """True when ``item`` satisfies every condition in ``filters``."""
    if not filters:
        return True

    for name, condition in filters.items():
        value = _field_value(item, name)
        if is_membership(condition):
            if not any(value == member for member in condition):
                return False
        elif value != condition:
            return False
    return True


def apply_filters(items: Iterable[R], filters: Mapping[str, Any] | None) -> list[R]:
    return [item for item in items if matches_filters(item, filters)]


def parse_order_by(order_by: str | None) -> tuple[str, bool] | None:
    """Split "-field" into ("field", True); None or "" means unordered."""
    if not order_by:
        return None
    descending = order_by.startswith("-")
    name = order_by[1:] if descending else order_by
    name = name.lstrip("+")
    if not name:
        return None
    return FIELD_ALIASES.get(name, name), descending


def sort_key(item: Record | Mapping[str, Any], name: str) -> str:
    value = _field_value(item, name)
    return "" if value is None else str(value)


def apply_order(items: Sequence[R], order_by: str | None) -> list[R]:
    """Stable lexicographic sort on the string form of one field."""
    parsed = parse_order_by(order_by)
    if parsed is None:
        return list(items)
    name, descending = parsed
    # sorted() with reverse=True still keeps equal keys in input order
    return sorted(items, key=lambda item: sort_key(item, name), reverse=descending)
