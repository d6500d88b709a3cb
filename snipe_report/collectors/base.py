"""Base collector interface for inventory data sources."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class BaseCollector(ABC):
    """Abstract base class for inventory collectors.

    A collector wraps one asset-tracking backend and hands out read-only
    record collections to the report layer.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this collector.

        Returns:
            A short, lowercase identifier (e.g., 'snipe')
        """
        pass

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-readable name for UI display."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this collector can reach its backend.

        Returns:
            True if the collector can operate, False otherwise.
        """
        pass

    def get_status(self) -> Dict[str, Any]:
        """Get collector status information."""
        return {
            "name": self.name,
            "display_name": self.display_name,
            "available": self.is_available(),
        }


class CollectorError(Exception):
    """Exception raised when a collector fails to collect data."""

    def __init__(self, collector_name: str, message: str, cause: Optional[Exception] = None):
        self.collector_name = collector_name
        self.cause = cause
        super().__init__(f"[{collector_name}] {message}")


class RequestFailure(CollectorError):
    """A query could not be answered by the backend.

    ``operation`` names the logical query that failed (usually the resource
    path) and ``status_code`` is the HTTP status, or None for network errors.
    """

    def __init__(
        self,
        collector_name: str,
        operation: str,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
    ):
        self.operation = operation
        self.status_code = status_code
        if status_code is not None:
            message = f"{operation} failed with HTTP {status_code}"
        else:
            message = f"{operation} failed: {cause}"
        super().__init__(collector_name, message, cause)
