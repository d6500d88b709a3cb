"""Console, CSV and JSON output for reports."""

from __future__ import annotations

import csv
import json
import sys
from typing import Any, List, Optional, Sequence, TextIO

from ..data.models import Report


def format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class TablePrinter:
    """Renders report tables as aligned plain-text columns."""

    def __init__(self, base_url: str, stream: Optional[TextIO] = None):
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.stream = stream or sys.stdout

    def _write(self, line: str = "") -> None:
        self.stream.write(line + "\n")

    def print_table(self, rows: Sequence[Sequence[Any]], headings: Sequence[str], title: Optional[str] = None) -> None:
        if title:
            self._write(title)
            self._write("=" * len(title))

        cells: List[List[str]] = [[format_cell(v) for v in row] for row in rows]
        widths = [len(h) for h in headings]
        for row in cells:
            for i, cell in enumerate(row[: len(widths)]):
                widths[i] = max(widths[i], len(cell))

        header = "  ".join(h.ljust(w) for h, w in zip(headings, widths)).rstrip()
        self._write(header)
        self._write("-" * len(header))
        for row in cells:
            self._write("  ".join(c.ljust(w) for c, w in zip(row, widths)).rstrip())
        self._write(f"({len(cells)} rows)")
        self._write()

    def laptop_url(self, laptop_id: Any) -> str:
        return f"{self.base_url}hardware/{laptop_id}"

    def print_laptop_url(self, laptop_id: Any) -> None:
        self._write(self.laptop_url(laptop_id))

    def print_report(self, report: Report) -> None:
        self.print_table(report.rows, report.headings, report.title)
        if report.entity_id is not None:
            self.print_laptop_url(report.entity_id)


def reports_to_json(reports: Sequence[Report]) -> str:
    return json.dumps([r.to_dict() for r in reports], indent=2, default=str)


def write_csv(reports: Sequence[Report], path: str) -> None:
    """Write reports to one CSV file; a title row precedes each titled table."""
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        for report in reports:
            if report.title:
                w.writerow([report.title])
            w.writerow(report.headings)
            for row in report.rows:
                w.writerow([format_cell(v) for v in row])
