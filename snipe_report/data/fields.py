"""Dotted field-path resolution over nested records.

A field path such as ``assigned_to.username`` walks nested objects one key
at a time. Missing data never raises:

- a missing key or null intermediate value resolves to None
- a path ending on a nested object resolves to None (not displayable)
- a path ending on a list resolves to its elements joined by ", "
- a path ending on a scalar resolves to the scalar, untouched
"""

from __future__ import annotations

from typing import Any, List, Mapping, Sequence, Union

from .models import ValueKind

LIST_SEPARATOR = ", "

FieldPath = Union[str, Sequence[str]]


def value_kind(value: Any) -> ValueKind:
    """Classify a record value."""
    if value is None:
        return ValueKind.NULL
    if isinstance(value, Mapping):
        return ValueKind.OBJECT
    if isinstance(value, (list, tuple)):
        return ValueKind.LIST
    return ValueKind.SCALAR


def split_path(path: FieldPath) -> List[str]:
    """Split a dotted path into its segments."""
    if isinstance(path, str):
        return [segment for segment in path.split(".") if segment]
    return list(path)


def _format_element(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def resolve(record: Any, path: FieldPath) -> Any:
    """Resolve ``path`` against ``record``.

    Args:
        record: Nested record (dict)
        path: Dotted path string or sequence of keys

    Returns:
        Scalar value, joined string for lists, or None.
    """
    value = record
    for key in split_path(path):
        if value_kind(value) is not ValueKind.OBJECT:
            return None
        value = value.get(key)

    kind = value_kind(value)
    if kind is ValueKind.OBJECT:
        return None
    if kind is ValueKind.LIST:
        return LIST_SEPARATOR.join(_format_element(v) for v in value)
    return value
