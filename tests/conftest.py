"""Pytest configuration and shared fixtures."""

import datetime as dt

import pytest

from snipe_report.collectors.snipe import SnipeCollector
from snipe_report.reports.service import ReportService

TODAY = dt.date(2025, 6, 15)


def _freeze(params):
    return tuple(sorted((str(k), str(v)) for k, v in params.items()))


class FakeSnipeApi:
    """In-memory stand-in for SnipeTransport.

    Collections are served in pages of ``page_size`` rows, keyed by path and
    filter. Documents are returned whole, like non-paginated endpoints.
    """

    def __init__(self, page_size=2):
        self.page_size = page_size
        self.collections = {}
        self.documents = {}
        self.failures = {}
        self.calls = []
        self.closed = False

    def add_collection(self, path, rows, **filters):
        self.collections[(path, _freeze(filters))] = rows

    def add_document(self, path, document):
        self.documents[path] = document

    def fail(self, path, offset=0, status=500):
        self.failures[(path, offset)] = status

    def calls_for(self, path):
        return [params for p, params in self.calls if p == path]

    def get(self, path, params=None):
        params = dict(params or {})
        self.calls.append((path, dict(params)))
        offset = int(params.pop("offset", 0))
        limit = int(params.pop("limit", self.page_size))

        if (path, offset) in self.failures:
            return self.failures[(path, offset)], {"status": "error", "messages": "Server Error"}
        if path in self.documents:
            return 200, self.documents[path]

        key = (path, _freeze(params))
        if key not in self.collections:
            return 404, {"status": "error", "messages": "Not found"}
        rows = self.collections[key]
        return 200, {"total": len(rows), "rows": rows[offset:offset + limit]}

    def close(self):
        self.closed = True


def laptop(id, asset_tag, username=None, manufacturer="Lenovo", model="X1", status=("Ready to Deploy", "deployable"),
           **extra):
    record = {
        "id": id,
        "asset_tag": asset_tag,
        "serial": f"SN{id:04d}",
        "name": f"lt-{id}",
        "assigned_to": {"id": 100 + id, "username": username} if username else None,
        "manufacturer": {"id": 1, "name": manufacturer} if manufacturer else None,
        "model": {"id": 2, "name": model},
        "status_label": {"id": 3, "name": status[0], "status_type": status[1]},
        "in_warranty": False,
        "warranty_expires": None,
        "purchase_cost": None,
    }
    record.update(extra)
    return record


@pytest.fixture
def active_laptops():
    return [
        laptop(1, "20190615", "alice", "Apple", "MacBook Pro", in_warranty=True,
               warranty_expires={"date": "2026-06-15", "formatted": "2026-06-15"}, purchase_cost="2,000.00"),
        laptop(2, "oldspare03", None, status=("Requestable", "deployable")),
        laptop(3, "42", "alice", status=("Pending repair", "pending")),
        laptop(4, "20230101", "bob", "Dell", "XPS 13", in_warranty=True,
               warranty_expires={"date": "2026-01-01", "formatted": "2026-01-01"}),
        laptop(5, "20210301", None, "Apple", "MacBook Air", status=("Requestable", "deployable")),
    ]


@pytest.fixture
def spare_laptops(active_laptops):
    return [active_laptops[1], active_laptops[4]]


@pytest.fixture
def archived_laptops():
    return [laptop(9, "20150101", None, "Apple", "MacBook", status=("Archived", "archived"))]


@pytest.fixture
def users():
    return [
        {"id": 10, "username": "carol", "name": "Carol"},
        {"id": 11, "username": "alice", "name": "Alice"},
        {"id": 12, "username": "bob", "name": "Bob"},
    ]


@pytest.fixture
def models():
    return [
        {"id": 20, "name": "MacBook Pro", "manufacturer": {"name": "Apple"}, "category": {"name": "Laptop"},
         "assets_count": 3},
        {"id": 21, "name": "X1", "manufacturer": {"name": "Lenovo"}, "category": {"name": "Laptop"},
         "assets_count": 2},
        {"id": 22, "name": "U2719D", "manufacturer": {"name": "Dell"}, "category": {"name": "Monitor"},
         "assets_count": 7},
        {"id": 23, "name": "XPS 13", "manufacturer": {"name": "Dell"}, "category": {"name": "Laptop"},
         "assets_count": 1},
    ]


@pytest.fixture
def fake_api(active_laptops, spare_laptops, archived_laptops, users, models):
    api = FakeSnipeApi(page_size=2)
    api.add_collection("hardware", active_laptops, category_id=1)
    api.add_collection("hardware", spare_laptops, category_id=1, status="Requestable")
    api.add_collection("hardware", archived_laptops, category_id=1, status="Archived")
    api.add_collection("users", users)
    api.add_collection("models", models)
    api.add_collection("manufacturers", [
        {"id": 1, "name": "Lenovo", "assets_count": 3},
        {"id": 2, "name": "Apple", "assets_count": 4},
    ])
    api.add_collection("statuslabels", [
        {"id": 1, "name": "Ready to Deploy", "type": "deployable"},
        {"id": 2, "name": "Archived", "type": "archived"},
        {"id": 3, "name": "Pending repair", "type": "pending"},
    ])
    return api


@pytest.fixture
def collector(fake_api):
    return SnipeCollector(fake_api)


@pytest.fixture
def service(collector):
    return ReportService(collector, today=lambda: TODAY)
