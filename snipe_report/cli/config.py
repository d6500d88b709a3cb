"""Configuration management for Snipe-IT reports.

Supports YAML-based configuration; every setting has a working default
except the API key, which is read from a secret file at startup.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_BASE_URL = "https://snipeit.example.org/"
DEFAULT_API_PATH = "api/v1/"
DEFAULT_API_KEY_PATH = "/secrets/api_key.txt"


class ConfigurationError(Exception):
    """Raised when configuration or secrets are missing or unreadable."""


@dataclass
class HttpConfig:
    """HTTP transport configuration."""

    timeout: int = 30  # seconds
    verify: bool = True
    ca_bundle: Optional[str] = None
    connect_retries: int = 2  # connection errors only, never HTTP statuses


@dataclass
class PaginationConfig:
    """Pagination behaviour."""

    page_size: Optional[int] = None  # None = server default
    strict: bool = False  # raise on a failed trailing page instead of truncating


@dataclass
class Config:
    """Main configuration container."""

    deployment_name: str = "Snipe-IT Reports"

    base_url: str = DEFAULT_BASE_URL
    api_path: str = DEFAULT_API_PATH
    api_key_path: str = DEFAULT_API_KEY_PATH
    laptop_category_id: int = 1
    mac_manufacturer: str = "Apple"

    depreciation_years: float = 4.0

    http: HttpConfig = field(default_factory=HttpConfig)
    pagination: PaginationConfig = field(default_factory=PaginationConfig)

    @property
    def api_url(self) -> str:
        base = self.base_url if self.base_url.endswith("/") else self.base_url + "/"
        return base + self.api_path.lstrip("/")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create config from dictionary."""
        deployment = data.get("deployment", {}) or {}
        snipe = data.get("snipe", {}) or {}
        reports = data.get("reports", {}) or {}

        http_data = data.get("http", {}) or {}
        http = HttpConfig(
            timeout=int(http_data.get("timeout", 30)),
            verify=bool(http_data.get("verify", True)),
            ca_bundle=http_data.get("ca_bundle"),
            connect_retries=int(http_data.get("connect_retries", 2)),
        )

        page_data = data.get("pagination", {}) or {}
        page_size = page_data.get("page_size")
        pagination = PaginationConfig(
            page_size=int(page_size) if page_size else None,
            strict=bool(page_data.get("strict", False)),
        )

        return cls(
            deployment_name=deployment.get("name", "Snipe-IT Reports"),
            base_url=snipe.get("base_url", DEFAULT_BASE_URL),
            api_path=snipe.get("api_path", DEFAULT_API_PATH),
            api_key_path=snipe.get("api_key_path", DEFAULT_API_KEY_PATH),
            laptop_category_id=int(snipe.get("laptop_category_id", 1)),
            mac_manufacturer=snipe.get("mac_manufacturer", "Apple"),
            depreciation_years=float(reports.get("depreciation_years", 4.0)),
            http=http,
            pagination=pagination,
        )

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load config from YAML file."""
        if not path.exists():
            return cls()
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Invalid config file {path}: expected a mapping")
        return cls.from_dict(data)

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        """Load config from path or defaults.

        Checks in order:
        1. Provided path
        2. SNIPE_REPORT_CONFIG env var
        3. ./configs/config.yaml
        4. ./config.yaml
        5. ~/.snipe_report/config.yaml
        6. Default config
        """
        paths_to_try = []

        if config_path:
            paths_to_try.append(Path(config_path))

        if env_path := os.environ.get("SNIPE_REPORT_CONFIG"):
            paths_to_try.append(Path(env_path))

        paths_to_try.extend([
            Path("./configs/config.yaml"),
            Path("./config.yaml"),
            Path.home() / ".snipe_report" / "config.yaml",
        ])

        for path in paths_to_try:
            if path.exists():
                return cls.from_yaml(path)

        return cls()

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "deployment": {"name": self.deployment_name},
            "snipe": {
                "base_url": self.base_url,
                "api_path": self.api_path,
                "api_key_path": self.api_key_path,
                "laptop_category_id": self.laptop_category_id,
                "mac_manufacturer": self.mac_manufacturer,
            },
            "reports": {"depreciation_years": self.depreciation_years},
            "http": {
                "timeout": self.http.timeout,
                "verify": self.http.verify,
                "ca_bundle": self.http.ca_bundle,
                "connect_retries": self.http.connect_retries,
            },
            "pagination": {
                "page_size": self.pagination.page_size,
                "strict": self.pagination.strict,
            },
        }


def load_api_key(path: str) -> str:
    """Read the API bearer token from ``path``.

    Raises:
        ConfigurationError: If the file is missing, unreadable or empty.
    """
    key_file = Path(path)
    if not key_file.is_file():
        raise ConfigurationError(f"Missing api key: {path}")
    try:
        token = key_file.read_text(encoding="utf-8").strip()
    except OSError as e:
        raise ConfigurationError(f"Unable to read api key {path}: {e}") from e
    if not token:
        raise ConfigurationError(f"Empty api key: {path}")
    return token
