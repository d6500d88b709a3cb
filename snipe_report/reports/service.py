"""Named inventory reports.

Every report follows the same recipe: fetch a collection from the collector,
filter it, derive any computed columns, and hand it to the report builder.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Callable, List, Optional

from ..collectors.snipe import SnipeCollector
from ..data.fields import resolve
from ..data.inventory import (
    DEPRECIATION_IN_YEARS,
    MAC_MANUFACTURER,
    age_in_years,
    classify_asset_tag,
    estimate_sale_price,
    is_os,
    parse_asset_date,
)
from ..data.models import AssetTagType, Cohort, OperatingSystem, Record, Report
from .builder import build_report, sort_key

PLACEHOLDER = "---"
STATUS_TYPES = ("pending", "archived", "deployable")

LAPTOP_FIELDS = ["asset_tag", "serial", "name", "assigned_to.username"]
LAPTOP_HEADINGS = ["Asset Tag", "Serial", "Asset Name", "Assigned To"]
USER_FIELDS = ["id", "username", "laptops"]
USER_HEADINGS = ["ID", "Username", "Laptops"]
MODEL_FIELDS = ["id", "name", "manufacturer.name", "assets_count"]
MODEL_HEADINGS = ["ID", "Name", "Manufacturer", "Num_Assets"]

# Fields left out of the single-laptop detail view
INFO_IGNORED_FIELDS = frozenset([
    "available_actions", "category", "checkin_counter", "checkout_counter", "company",
    "created_at", "custom_fields", "deleted_at", "eol", "expected_checkin", "image",
    "last_audit_date", "location", "last_checkout", "model_number", "next_audit_date",
    "requests_counter", "rtd_location", "supplier", "updated_at", "warranty_months",
])
INFO_NAME_FIELDS = ("model", "status_label", "manufacturer")
INFO_DATE_FIELDS = ("updated_at", "warranty_expires", "purchase_date")


def _by_tag(records: List[Record]) -> List[Record]:
    return sorted(records, key=lambda r: sort_key(r.get("asset_tag")))


class ReportService:
    """Builds report tables from a SnipeCollector.

    ``today`` may be injected to make age-based reports reproducible.
    """

    def __init__(
        self,
        collector: SnipeCollector,
        depreciation_years: float = DEPRECIATION_IN_YEARS,
        mac_manufacturer: str = MAC_MANUFACTURER,
        today: Optional[Callable[[], dt.date]] = None,
    ):
        self.collector = collector
        self.depreciation_years = depreciation_years
        self.mac_manufacturer = mac_manufacturer
        self._today = today or dt.date.today

    def _age(self, asset_tag: Any) -> Optional[float]:
        return age_in_years(asset_tag, today=self._today())

    # --------------------------------------------------------
    # Laptops
    # --------------------------------------------------------

    def laptops(self, cohort: Cohort = Cohort.ACTIVE) -> Report:
        return build_report(self.collector.laptops(cohort), LAPTOP_FIELDS, "asset_tag", LAPTOP_HEADINGS)

    def laptops_in_warranty(self, cohort: Cohort = Cohort.ACTIVE) -> Report:
        data = [laptop for laptop in self.collector.laptops(cohort) if laptop.get("in_warranty")]
        return build_report(
            data,
            ["warranty_expires.formatted"] + LAPTOP_FIELDS,
            "warranty_expires.formatted",
            ["Warranty Expires"] + LAPTOP_HEADINGS,
        )

    def laptops_by_age(self, cohort: Cohort = Cohort.ACTIVE, older_than_years: float = 0.0) -> Report:
        """Laptops sorted by approximate age.

        Without a threshold, laptops whose tags carry no date (word-based,
        then incremental) are listed first with placeholder dates. With a
        threshold only date-based laptops at least that old are listed.
        """
        laptops = self.collector.laptops(cohort)
        older_than_years = float(older_than_years or 0.0)
        rows = []

        if older_than_years == 0.0:
            for tag_type in (AssetTagType.WORD_BASED, AssetTagType.INCREMENTAL):
                group = [l for l in laptops if classify_asset_tag(l.get("asset_tag")) is tag_type]
                rows += [
                    [PLACEHOLDER, PLACEHOLDER, l.get("asset_tag"), l.get("serial"), l.get("name")]
                    for l in _by_tag(group)
                ]

        dated = [l for l in laptops if classify_asset_tag(l.get("asset_tag")) is AssetTagType.DATE_BASED]
        if older_than_years != 0.0:
            ages = {id(l): self._age(l.get("asset_tag")) for l in dated}
            dated = [l for l in dated if ages[id(l)] is not None and ages[id(l)] >= older_than_years]

        for laptop in _by_tag(dated):
            tag = laptop.get("asset_tag")
            purchased = parse_asset_date(tag)
            rows.append([
                purchased.strftime("%Y-%m-%d") if purchased else None,
                self._age(tag),
                tag,
                laptop.get("serial"),
                laptop.get("name"),
            ])

        return Report(
            headings=["Purchase Date", "Approx Age", "Asset Tag", "Serial", "Asset Name"],
            rows=rows,
        )

    def laptops_by_status(self, cohort: Cohort = Cohort.ACTIVE, status: Optional[str] = None) -> Report:
        """Laptops grouped by status.

        ``status`` may be a status type (pending, archived, deployable) or a
        status label name.
        """
        laptops = self.collector.laptops(cohort)
        status_field = "status_type" if status in STATUS_TYPES else "name"
        status_path = f"status_label.{status_field}"
        if status is not None:
            laptops = [l for l in laptops if resolve(l, status_path) == status]
        return build_report(
            laptops,
            [status_path] + LAPTOP_FIELDS,
            status_path,
            ["Status"] + LAPTOP_HEADINGS,
        )

    def laptop_sale_price(self, asset_tag: str) -> Report:
        laptop = self.collector.get_laptop(asset_tag)
        age = self._age(asset_tag)
        price = estimate_sale_price(laptop.get("purchase_cost"), age, self.depreciation_years)
        return Report(
            headings=["Est Price", "Approx Age", "Purchase Cost", "Asset Tag", "Serial", "Asset Name"],
            rows=[[
                round(price, 2) if price is not None else None,
                age,
                laptop.get("purchase_cost"),
                laptop.get("asset_tag"),
                laptop.get("serial"),
                laptop.get("name"),
            ]],
        )

    def laptop_info(self, asset_tag: str) -> Report:
        """Attribute/value view of one laptop, with a link to its page."""
        laptop = self.collector.get_laptop(asset_tag)
        rows = []
        for key, value in laptop.items():
            if key in INFO_IGNORED_FIELDS:
                continue
            if key in INFO_NAME_FIELDS:
                rows.append([key, resolve(value, "name")])
            elif key in INFO_DATE_FIELDS:
                rows.append([key, resolve(value, "formatted")])
            elif key == "assigned_to":
                if value is not None:
                    rows.append([key, resolve(value, "username")])
            else:
                rows.append([key, value])
        return Report(headings=["Attribute", "Value"], rows=rows, entity_id=laptop.get("id"))

    def laptops_by_manufacturer(self, cohort: Cohort = Cohort.ACTIVE) -> List[Report]:
        """One table per manufacturer that has laptops in the cohort."""
        laptops = self.collector.laptops(cohort)
        reports = []
        for manufacturer in self.collector.laptop_manufacturers():
            group = [l for l in laptops if resolve(l, "manufacturer.name") == manufacturer]
            if group:
                reports.append(build_report(group, LAPTOP_FIELDS, "asset_tag", LAPTOP_HEADINGS, title=manufacturer))
        return reports

    # --------------------------------------------------------
    # Statuses, models, manufacturers
    # --------------------------------------------------------

    def statuses(self) -> Report:
        return build_report(self.collector.statuses(), ["id", "type", "name"], "type", ["ID", "Type", "Name"])

    def models(self) -> Report:
        return build_report(self.collector.models(), MODEL_FIELDS, "manufacturer.name", MODEL_HEADINGS)

    def laptop_models(self) -> Report:
        return build_report(self.collector.laptop_models(), MODEL_FIELDS, "manufacturer.name", MODEL_HEADINGS)

    def manufacturers(self) -> Report:
        return build_report(
            self.collector.manufacturers(), ["id", "name", "assets_count"], "name", ["ID", "Name", "Num_Assets"]
        )

    # --------------------------------------------------------
    # Users
    # --------------------------------------------------------

    def users(self) -> Report:
        return build_report(self.collector.users(), USER_FIELDS, "username", USER_HEADINGS)

    def users_by_os(self, cohort: Cohort = Cohort.ACTIVE, os: OperatingSystem = OperatingSystem.ALL) -> Report:
        data = [
            l for l in self.collector.laptops(cohort)
            if l.get("assigned_to") is not None and is_os(l.get("manufacturer"), os, self.mac_manufacturer)
        ]
        return build_report(
            data,
            ["asset_tag", "assigned_to.username", "manufacturer.name", "model.name"],
            "assigned_to.username",
            ["Asset Tag", "Assigned To", "Manufacturer", "Model"],
        )

    def users_with_no_assets(self) -> Report:
        return build_report(self.collector.users_without_laptops(), USER_FIELDS, "username", USER_HEADINGS)

    def users_with_multiple_assets(self) -> Report:
        return build_report(self.collector.users_with_multiple_laptops(), USER_FIELDS, "username", USER_HEADINGS)
