"""Data collectors - the Snipe-IT API and its pagination."""

from .base import BaseCollector, CollectorError, RequestFailure
from .snipe import QueryAggregator, SnipeCollector, SnipeTransport

__all__ = [
    "BaseCollector",
    "CollectorError",
    "RequestFailure",
    "QueryAggregator",
    "SnipeCollector",
    "SnipeTransport",
]
