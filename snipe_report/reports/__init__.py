"""Reports - tabular projection and the named inventory reports."""

from .builder import build_report, build_rows, sort_key
from .service import ReportService

__all__ = [
    "build_report",
    "build_rows",
    "sort_key",
    "ReportService",
]
