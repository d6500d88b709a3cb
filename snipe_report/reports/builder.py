"""Tabular projection of record collections.

``build_rows`` sorts a collection by one field path and projects every
record through a list of field paths, producing one row per record.
"""

from __future__ import annotations

from numbers import Number
from typing import Any, List, Optional, Sequence, Tuple

from ..data.fields import FieldPath, resolve
from ..data.models import Record, Report, ReportRow


def sort_key(value: Any) -> Tuple[int, Any]:
    """Total ordering for resolved values: numbers, then strings, then None."""
    if value is None:
        return (2, "")
    if isinstance(value, Number) and not isinstance(value, bool):
        return (0, value)
    return (1, str(value))


def sort_records(collection: Sequence[Record], sort_path: FieldPath) -> List[Record]:
    """Stable ascending sort by the value at ``sort_path``."""
    return sorted(collection, key=lambda record: sort_key(resolve(record, sort_path)))


def project(record: Record, field_paths: Sequence[FieldPath]) -> ReportRow:
    return [resolve(record, path) for path in field_paths]


def build_rows(
    collection: Sequence[Record],
    field_paths: Sequence[FieldPath],
    sort_path: Optional[FieldPath] = None,
) -> List[ReportRow]:
    """Project ``collection`` into rows, optionally sorted.

    Args:
        collection: Records to tabulate
        field_paths: One dotted path per column
        sort_path: Dotted path to sort by (ascending, stable)

    Returns:
        One row per record, cells in ``field_paths`` order.
    """
    records = sort_records(collection, sort_path) if sort_path else list(collection)
    return [project(record, field_paths) for record in records]


def build_report(
    collection: Sequence[Record],
    field_paths: Sequence[FieldPath],
    sort_path: Optional[FieldPath] = None,
    headings: Sequence[str] = (),
    title: Optional[str] = None,
) -> Report:
    return Report(
        headings=list(headings),
        rows=build_rows(collection, field_paths, sort_path),
        title=title,
    )
