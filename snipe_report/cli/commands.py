"""Registry of report commands.

Each entry maps a command name to the ReportService method that builds it
and the typed parameters it takes. The argparse interface and the
``commands`` listing are both generated from this table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..data.models import Cohort, OperatingSystem, Report
from ..reports.service import ReportService

GROUPS = ("Users", "Laptops", "Other")


@dataclass(frozen=True)
class ParamSpec:
    """A typed command parameter."""

    name: str
    help: str = ""
    convert: Callable[[Any], Any] = str
    choices: Optional[Sequence[str]] = None
    required: bool = True
    default: Any = None


@dataclass(frozen=True)
class CommandSpec:
    """A named report command."""

    name: str
    group: str
    method: str  # ReportService method name
    help: str
    params: List[ParamSpec] = field(default_factory=list)

    def run(self, service: ReportService, values: Dict[str, Any]) -> List[Report]:
        """Invoke the report and always return a list of reports."""
        kwargs = {}
        for param in self.params:
            value = values.get(param.name, param.default)
            kwargs[param.name] = param.convert(value) if value is not None else None
        result = getattr(service, self.method)(**kwargs)
        return list(result) if isinstance(result, list) else [result]


COHORT = ParamSpec(
    "cohort",
    help="('active' will return all 'staff' and all 'spares', but exclude 'archived')",
    convert=Cohort.parse,
    choices=[c.value for c in Cohort],
    required=False,
    default=Cohort.ACTIVE.value,
)
OS = ParamSpec(
    "os",
    help="Operating system of the assigned laptop",
    convert=OperatingSystem,
    choices=[o.value for o in OperatingSystem],
)
STATUS = ParamSpec(
    "status",
    help="Can be a status type or a status name. Run 'statuses' to get a list of all options",
    required=False,
)
OLDER_THAN = ParamSpec(
    "older_than_years",
    help="Only list laptops at least this many (approximate) years old",
    convert=float,
    required=False,
    default=0.0,
)
ASSET_TAG = ParamSpec("asset_tag", help="Asset tag of the laptop")


COMMANDS: Dict[str, CommandSpec] = {
    spec.name: spec
    for spec in [
        # Laptops
        CommandSpec("laptops", "Laptops", "laptops", "List laptops", [COHORT]),
        CommandSpec("laptops-in-warranty", "Laptops", "laptops_in_warranty", "List in-warranty laptops", [COHORT]),
        CommandSpec("laptops-by-age", "Laptops", "laptops_by_age", "List laptops sorted by approximate age",
                    [COHORT, OLDER_THAN]),
        CommandSpec("laptops-by-status", "Laptops", "laptops_by_status", "List laptops by status", [COHORT, STATUS]),
        CommandSpec("laptops-by-manufacturer", "Laptops", "laptops_by_manufacturer",
                    "List laptops, one table per manufacturer", [COHORT]),
        CommandSpec("laptop-sale-price", "Laptops", "laptop_sale_price",
                    "Estimate the resale price of a laptop", [ASSET_TAG]),
        CommandSpec("laptop-info", "Laptops", "laptop_info", "Show the details of one laptop", [ASSET_TAG]),
        CommandSpec("laptop-models", "Laptops", "laptop_models", "List laptop models"),
        # Users
        CommandSpec("users", "Users", "users", "List users and their laptops"),
        CommandSpec("users-by-os", "Users", "users_by_os", "List laptop assignees by operating system",
                    [COHORT, OS]),
        CommandSpec("users-with-no-assets", "Users", "users_with_no_assets", "List users without a laptop"),
        CommandSpec("users-with-multiple-assets", "Users", "users_with_multiple_assets",
                    "List users with two or more laptops"),
        # Other
        CommandSpec("statuses", "Other", "statuses", "List status labels"),
        CommandSpec("models", "Other", "models", "List all models"),
        CommandSpec("manufacturers", "Other", "manufacturers", "List manufacturers"),
    ]
}


def commands_by_group() -> Dict[str, List[CommandSpec]]:
    grouped: Dict[str, List[CommandSpec]] = {group: [] for group in GROUPS}
    for spec in COMMANDS.values():
        grouped.setdefault(spec.group, []).append(spec)
    return grouped


def describe_params(spec: CommandSpec) -> str:
    parts = []
    for param in spec.params:
        label = param.name
        if param.choices:
            label += "=" + "|".join(param.choices)
        parts.append(label if param.required else f"[{label}]")
    return " ".join(parts)


def command_listing() -> Report:
    """Table of every command, grouped."""
    rows = []
    for group, specs in commands_by_group().items():
        for spec in specs:
            rows.append([group, spec.name, describe_params(spec), spec.help])
    return Report(headings=["Group", "Command", "Parameters", "Description"], rows=rows)
