"""Cross-referencing and derivations over inventory records.

Joins laptops to users, partitions the fleet into cohorts, and derives the
per-asset values reports need (tag type, approximate age, resale estimate).
"""

from __future__ import annotations

import datetime as dt
import re
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from ..logs import debug
from .fields import resolve
from .models import AssetTagType, OperatingSystem, Record

DEPRECIATION_IN_YEARS = 4.0
INCREMENTAL_TAG_LIMIT = 100
DAYS_PER_YEAR = 365.0
MAC_MANUFACTURER = "Apple"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_LEADING_DATE = re.compile(r"^\s*(\d{8})")
_DATE_FORMATS = ("%Y%m%d", "%Y-%m-%d", "%Y/%m/%d")


# =============================================================================
# Joins and cohorts
# =============================================================================


def attach_assets(users: Sequence[Record], laptops: Sequence[Record]) -> List[Record]:
    """Return copies of ``users`` with a ``laptops`` field.

    The field lists the asset tags of every laptop assigned to the user, in
    laptop order, or is None when the user has no laptop.
    """
    result = []
    for user in users:
        username = user.get("username")
        tags = [
            laptop.get("asset_tag")
            for laptop in laptops
            if username is not None and resolve(laptop, "assigned_to.username") == username
        ]
        enriched = dict(user)
        enriched["laptops"] = tags or None
        result.append(enriched)
    return result


def partition_cohort(
    active: Sequence[Record], spares: Sequence[Record], identity: str = "id"
) -> List[Record]:
    """Return the records of ``active`` that are not in ``spares``."""
    spare_ids = {spare.get(identity) for spare in spares}
    return [record for record in active if record.get(identity) not in spare_ids]


def unique_in_order(values: Iterable[Any]) -> List[Any]:
    """De-duplicate ``values`` keeping first occurrences; None is dropped."""
    seen = set()
    out = []
    for value in values:
        if value is None or value in seen:
            continue
        seen.add(value)
        out.append(value)
    return out


def is_os(manufacturer: Optional[Mapping[str, Any]], os: str, mac_vendor: str = MAC_MANUFACTURER) -> bool:
    """Check whether a laptop's manufacturer matches an OS selector.

    Macs are identified by vendor; every other vendor counts as linux.
    """
    if manufacturer is None:
        return False
    is_mac = manufacturer.get("name") == mac_vendor
    if os == OperatingSystem.MAC:
        return is_mac
    if os == OperatingSystem.LINUX:
        return not is_mac
    return True


# =============================================================================
# Asset tags
# =============================================================================


def _leading_int(text: Any) -> int:
    match = _LEADING_INT.match(str(text or ""))
    return int(match.group(1)) if match else 0


def classify_asset_tag(tag: Any) -> AssetTagType:
    """Classify an asset tag.

    Tags without a leading number are word-based, small numbers are the old
    incremental scheme, and anything else is a purchase date.
    """
    number = _leading_int(tag)
    if number == 0:
        return AssetTagType.WORD_BASED
    if number < INCREMENTAL_TAG_LIMIT:
        return AssetTagType.INCREMENTAL
    return AssetTagType.DATE_BASED


def parse_asset_date(tag: Any) -> Optional[dt.date]:
    """Parse the purchase date encoded in a date-based tag."""
    text = str(tag or "").strip()
    for fmt in _DATE_FORMATS:
        try:
            return dt.datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    match = _LEADING_DATE.match(text)
    if match:
        try:
            return dt.datetime.strptime(match.group(1), "%Y%m%d").date()
        except ValueError:
            pass
    debug("inventory", f"asset tag {text!r} does not encode a date")
    return None


def age_in_years(tag: Any, today: Optional[dt.date] = None) -> Optional[float]:
    """Approximate asset age in years, from its tag.

    Ignores leap years and month lengths. Returns None for tags that are not
    date-based.
    """
    if classify_asset_tag(tag) is not AssetTagType.DATE_BASED:
        return None
    purchased = parse_asset_date(tag)
    if purchased is None:
        return None
    today = today or dt.date.today()
    return round((today - purchased).days / DAYS_PER_YEAR, 3)


# =============================================================================
# Prices
# =============================================================================


def parse_cost(value: Any) -> Optional[float]:
    """Parse a purchase cost such as 1299, '1299.00' or '1,299.00'."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).replace(",", "").strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def estimate_sale_price(
    purchase_cost: Any, age: Optional[float], horizon: float = DEPRECIATION_IN_YEARS
) -> Optional[float]:
    """Straight-line write-down of the purchase cost over ``horizon`` years."""
    cost = parse_cost(purchase_cost)
    if cost is None or age is None:
        return None
    return cost * (1 - min(age, horizon) / horizon)
