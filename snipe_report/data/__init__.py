"""Data layer - models, field resolution, caching and cross-referencing."""

from .cache import RecordCache, cache_key
from .fields import resolve, split_path, value_kind
from .models import (
    AssetTagType,
    Cohort,
    OperatingSystem,
    Record,
    Report,
    ReportRow,
    ValueKind,
)

__all__ = [
    "RecordCache",
    "cache_key",
    "resolve",
    "split_path",
    "value_kind",
    "AssetTagType",
    "Cohort",
    "OperatingSystem",
    "Record",
    "Report",
    "ReportRow",
    "ValueKind",
]
