"""Snipe-IT inventory collector.

Talks to the Snipe-IT REST API (``<base_url>api/v1/``) and exposes the
laptop fleet, users, models, manufacturers and status labels as plain
record lists. Paginated endpoints are read to exhaustion; every collection
is fetched at most once per collector.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import certifi
import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..data.cache import RecordCache, cache_key
from ..data.inventory import attach_assets, partition_cohort, unique_in_order
from ..data.models import Cohort, Record
from ..logs import debug, warn
from .base import BaseCollector, CollectorError, RequestFailure

LAPTOP_CATEGORY_ID = 1
LAPTOP_CATEGORY_NAME = "Laptop"
SPARE_STATUS = "Requestable"
ARCHIVED_STATUS = "Archived"
DEFAULT_USER_AGENT = "snipe-report/1.0"

Page = Tuple[int, Any]
PageFetcher = Callable[[str, Dict[str, Any]], Page]


class SnipeTransport:
    """Authenticated JSON GETs against the Snipe-IT API."""

    def __init__(
        self,
        api_url: str,
        token: str,
        timeout: int = 30,
        verify: bool = True,
        ca_bundle: Optional[str] = None,
        connect_retries: int = 2,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self.api_url = api_url if api_url.endswith("/") else api_url + "/"
        self.timeout = timeout
        self.connect_retries = connect_retries
        self._token = token
        self._user_agent = user_agent
        self._verify = self._determine_verify(verify, ca_bundle)
        self._session: Optional[requests.Session] = None

        if self._verify is False:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    @staticmethod
    def _determine_verify(verify: bool, ca_bundle: Optional[str]):
        """Determine SSL verification setting."""
        if not verify:
            return False
        if ca_bundle:
            return ca_bundle
        return certifi.where()

    def _get_session(self) -> requests.Session:
        """Get or create the session.

        Only connection failures are retried; HTTP error statuses are handed
        back to the caller untouched.
        """
        if self._session is None:
            session = requests.Session()
            retry = Retry(
                total=self.connect_retries,
                connect=self.connect_retries,
                read=0,
                status=0,
                backoff_factor=0.5,
                allowed_methods=("GET", "HEAD"),
                raise_on_status=False,
            )
            adapter = HTTPAdapter(max_retries=retry, pool_connections=2, pool_maxsize=4)
            session.mount("https://", adapter)
            session.mount("http://", adapter)
            session.verify = self._verify
            session.headers.update({
                "Accept": "application/json",
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self._token}",
                "User-Agent": self._user_agent,
            })
            self._session = session
        return self._session

    def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Page:
        """GET ``<api_url><path>`` and return ``(status_code, payload)``.

        Raises:
            RequestFailure: If the request could not be sent or answered.
        """
        url = self.api_url + path.lstrip("/")
        try:
            resp = self._get_session().get(url, params=dict(params or {}), timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise RequestFailure("snipe", path, cause=e)

        try:
            payload = resp.json()
        except ValueError:
            payload = {}
        return resp.status_code, payload

    def close(self) -> None:
        """Close the session and release resources."""
        if self._session is not None:
            self._session.close()
            self._session = None


class QueryAggregator:
    """Reads a paginated resource to exhaustion.

    Pages are requested at increasing offsets with the same filter until a
    page comes back empty. The offset advances by the number of rows each
    page actually returned.
    """

    def __init__(self, fetch_page: PageFetcher, strict: bool = False, page_size: Optional[int] = None):
        """Initialize the aggregator.

        Args:
            fetch_page: Callable ``(path, params) -> (status_code, payload)``
            strict: Raise on a failed continuation page instead of returning
                the rows read so far
            page_size: Optional ``limit`` sent with every page request
        """
        self._fetch_page = fetch_page
        self.strict = strict
        self.page_size = page_size

    def _params(self, filters: Mapping[str, Any], offset: int) -> Dict[str, Any]:
        params = dict(filters)
        if self.page_size:
            params["limit"] = self.page_size
        if offset > 0:
            params["offset"] = offset
        return params

    def fetch(self, resource: str, filters: Optional[Mapping[str, Any]] = None) -> Any:
        """Fetch every page of ``resource`` and merge them.

        Non-paginated endpoints (no ``rows`` key) are returned as-is. For
        paginated ones the first page's envelope is kept and its ``rows``
        replaced with the rows of every page, in order.

        Raises:
            RequestFailure: If the first page fails, or any page in strict mode.
        """
        filters = dict(filters or {})
        status, first = self._fetch_page(resource, self._params(filters, 0))
        if status != 200:
            raise RequestFailure("snipe", resource, status_code=status)
        if not isinstance(first, dict) or "rows" not in first:
            return first

        rows: List[Record] = list(first.get("rows") or [])
        page_rows = rows
        offset = 0
        pages = 1
        while page_rows:
            offset += len(page_rows)
            status, page = self._fetch_page(resource, self._params(filters, offset))
            if status != 200:
                if self.strict:
                    raise RequestFailure("snipe", resource, status_code=status)
                warn("snipe", f"{resource} page at offset {offset} failed with HTTP {status}; "
                     f"returning {len(rows)} rows")
                break
            pages += 1
            page_rows = list(page.get("rows") or []) if isinstance(page, dict) else []
            rows.extend(page_rows)

        debug("snipe", f"{resource} {filters or ''} -> {len(rows)} rows in {pages} pages")
        merged = dict(first)
        merged["rows"] = rows
        return merged

    def fetch_rows(self, resource: str, filters: Optional[Mapping[str, Any]] = None) -> List[Record]:
        """Fetch a paginated resource and return only its rows.

        A bare JSON list is taken as the complete set of rows.
        """
        result = self.fetch(resource, filters)
        if isinstance(result, list):
            return list(result)
        return list(result.get("rows") or []) if isinstance(result, dict) else []


class SnipeCollector(BaseCollector):
    """Collector for the Snipe-IT laptop fleet and related records.

    All collections are memoized in a RecordCache owned by the collector;
    callers receive the cached lists and must not mutate them.
    """

    def __init__(
        self,
        transport: SnipeTransport,
        laptop_category_id: int = LAPTOP_CATEGORY_ID,
        strict_pagination: bool = False,
        page_size: Optional[int] = None,
        cache: Optional[RecordCache] = None,
    ):
        self.transport = transport
        self.laptop_category_id = laptop_category_id
        self.aggregator = QueryAggregator(transport.get, strict=strict_pagination, page_size=page_size)
        self.cache = cache or RecordCache()

    @property
    def name(self) -> str:
        return "snipe"

    @property
    def display_name(self) -> str:
        return "Snipe-IT Inventory"

    def is_available(self) -> bool:
        """Snipe is available if the status label endpoint answers."""
        try:
            status, _ = self.transport.get("statuslabels", {"limit": 1})
            return status == 200
        except CollectorError:
            return False

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> "SnipeCollector":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _rows(self, resource: str, filters: Optional[Dict[str, Any]] = None) -> List[Record]:
        return self.cache.get_or_fetch(
            cache_key(resource, filters),
            lambda: self.aggregator.fetch_rows(resource, filters),
        )

    def _laptop_filter(self, status: Optional[str] = None) -> Dict[str, Any]:
        filters: Dict[str, Any] = {"category_id": self.laptop_category_id}
        if status:
            filters["status"] = status
        return filters

    # --- Laptops ---

    def active_laptops(self) -> List[Record]:
        """All laptops that are not archived."""
        return self._rows("hardware", self._laptop_filter())

    def spare_laptops(self) -> List[Record]:
        """Non-archived spare laptops."""
        return self._rows("hardware", self._laptop_filter(SPARE_STATUS))

    def staff_laptops(self) -> List[Record]:
        """Laptops that are not spares, regardless of checkout state."""
        return self.cache.get_or_fetch(
            cache_key("hardware", self._laptop_filter(), Cohort.STAFF.value),
            lambda: partition_cohort(self.active_laptops(), self.spare_laptops()),
        )

    def archived_laptops(self) -> List[Record]:
        return self._rows("hardware", self._laptop_filter(ARCHIVED_STATUS))

    def laptops(self, cohort: Any = Cohort.ACTIVE) -> List[Record]:
        cohort = Cohort.parse(cohort)
        if cohort is Cohort.SPARES:
            return self.spare_laptops()
        if cohort is Cohort.STAFF:
            return self.staff_laptops()
        if cohort is Cohort.ARCHIVED:
            return self.archived_laptops()
        return self.active_laptops()

    def get_laptop(self, asset_tag: str) -> Record:
        """Fetch one asset by tag (not cached).

        Raises:
            CollectorError: If Snipe reports the tag as unknown.
        """
        laptop = self.aggregator.fetch(f"hardware/bytag/{asset_tag}")
        # Snipe answers unknown tags with HTTP 200 and an error envelope
        if not isinstance(laptop, dict):
            raise CollectorError(self.name, f"asset {asset_tag}: unexpected response")
        if laptop.get("status") == "error":
            raise CollectorError(self.name, f"asset {asset_tag}: {laptop.get('messages')}")
        return laptop

    # --- Users ---

    def users(self) -> List[Record]:
        """All users, each with a ``laptops`` list of assigned asset tags."""
        return self.cache.get_or_fetch(
            cache_key("users", cohort="with_laptops"),
            lambda: attach_assets(self._rows("users"), self.active_laptops()),
        )

    def users_without_laptops(self) -> List[Record]:
        return [user for user in self.users() if user.get("laptops") is None]

    def users_with_multiple_laptops(self) -> List[Record]:
        return [user for user in self.users() if len(user.get("laptops") or []) >= 2]

    # --- Other ---

    def models(self) -> List[Record]:
        return self._rows("models")

    def laptop_models(self) -> List[Record]:
        return self.cache.get_or_fetch(
            cache_key("models", cohort="laptop"),
            lambda: [
                model for model in self.models()
                if (model.get("category") or {}).get("name") == LAPTOP_CATEGORY_NAME
            ],
        )

    def manufacturers(self) -> List[Record]:
        return self._rows("manufacturers")

    def laptop_manufacturers(self) -> List[str]:
        """Manufacturer names of all models, first-seen order."""
        return self.cache.get_or_fetch(
            cache_key("models", cohort="manufacturer_names"),
            lambda: unique_in_order((model.get("manufacturer") or {}).get("name") for model in self.models()),
        )

    def statuses(self) -> List[Record]:
        return self._rows("statuslabels")
