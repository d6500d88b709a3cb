"""Data models for inventory reporting.

Records fetched from the asset tracker are kept as plain dictionaries
(``Record``); they have no fixed schema and any field may be missing or
null. The types here describe what the report layer derives from them:

1. COHORTS
   - active: every laptop that is not archived
   - spares: requestable laptops
   - staff: active laptops that are not spares
   - archived: laptops in the archived state

2. ASSET TAGS
   - word_based: tags such as 'oldspare03'
   - incremental: very old tags counting up from 1 (< 100)
   - date_based: tags encoding the purchase date, e.g. '20190615'

3. REPORTS
   - headings and rows are parallel; every row has one cell per heading
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

Record = Dict[str, Any]
ReportRow = List[Any]


class Cohort(str, Enum):
    """Named subset of the laptop fleet."""

    ACTIVE = "active"  # staff + spares, excluding archived
    STAFF = "staff"
    SPARES = "spares"
    ARCHIVED = "archived"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Cohort":
        """Return the cohort for ``value``; unknown or empty values mean ACTIVE."""
        if isinstance(value, cls):
            return value
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.ACTIVE


class OperatingSystem(str, Enum):
    """OS selector for user/laptop reports."""

    MAC = "mac"
    LINUX = "linux"
    ALL = "all"


class AssetTagType(str, Enum):
    """Classification of an asset tag by its format."""

    WORD_BASED = "word_based"
    INCREMENTAL = "incremental"
    DATE_BASED = "date_based"


class ValueKind(str, Enum):
    """Shape of a value found inside a record."""

    NULL = "NULL"
    SCALAR = "SCALAR"  # str, int, float, bool
    OBJECT = "OBJECT"  # nested record
    LIST = "LIST"  # ordered sequence


@dataclass
class Report:
    """A rendered-ready table.

    ``entity_id`` is set by single-asset reports so the printer can also
    show a link to the asset page.
    """

    headings: List[str]
    rows: List[ReportRow] = field(default_factory=list)
    title: Optional[str] = None
    entity_id: Optional[int] = None

    def to_records(self) -> List[Dict[str, Any]]:
        """Return rows as heading-keyed dictionaries."""
        return [dict(zip(self.headings, row)) for row in self.rows]

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "title": self.title,
            "headings": list(self.headings),
            "rows": self.to_records(),
        }
        if self.entity_id is not None:
            data["entity_id"] = self.entity_id
        return data
