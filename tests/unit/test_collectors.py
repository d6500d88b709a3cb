"""Tests for the Snipe-IT collector, transport and pagination."""

import pytest
import requests
from unittest.mock import MagicMock, patch

from snipe_report.collectors.base import CollectorError, RequestFailure
from snipe_report.collectors.snipe import QueryAggregator, SnipeCollector, SnipeTransport
from snipe_report.data.models import Cohort


def scripted(*pages):
    """Page fetcher returning ``pages`` in order and recording the params."""
    calls = []
    queue = list(pages)

    def fetch(path, params):
        calls.append((path, dict(params)))
        return queue.pop(0)

    fetch.calls = calls
    return fetch


def page(*rows, total=None):
    return 200, {"total": total, "rows": list(rows)}


class TestQueryAggregator:
    def test_merges_pages_in_order(self):
        fetch = scripted(page({"id": 1}, {"id": 2}), page({"id": 3}), page())
        result = QueryAggregator(fetch).fetch_rows("hardware", {"category_id": 1})
        assert [r["id"] for r in result] == [1, 2, 3]

    def test_offsets_follow_returned_counts(self):
        fetch = scripted(page({"id": 1}, {"id": 2}, {"id": 3}), page({"id": 4}), page())
        QueryAggregator(fetch).fetch("hardware", {"category_id": 1})
        offsets = [params.get("offset") for _, params in fetch.calls]
        assert offsets == [None, 3, 4]

    def test_same_filter_on_every_page(self):
        fetch = scripted(page({"id": 1}), page())
        QueryAggregator(fetch).fetch("hardware", {"category_id": 1, "status": "Requestable"})
        for path, params in fetch.calls:
            assert path == "hardware"
            assert params["category_id"] == 1
            assert params["status"] == "Requestable"

    @pytest.mark.parametrize("sizes", [[0], [1, 0], [5, 5, 2, 0], [50, 50, 50, 1, 0]])
    def test_result_size_is_sum_of_pages(self, sizes):
        pages = []
        next_id = 0
        for size in sizes:
            pages.append(page(*({"id": next_id + i} for i in range(size))))
            next_id += size
        result = QueryAggregator(scripted(*pages)).fetch_rows("users")
        assert len(result) == sum(sizes)
        assert [r["id"] for r in result] == list(range(sum(sizes)))

    def test_keeps_first_page_envelope(self):
        fetch = scripted(page({"id": 1}, total=1), page(total=1))
        result = QueryAggregator(fetch).fetch("users")
        assert result["total"] == 1
        assert result["rows"] == [{"id": 1}]

    def test_non_paginated_returned_as_is(self):
        document = {"id": 7, "asset_tag": "20190615"}
        fetch = scripted((200, document))
        assert QueryAggregator(fetch).fetch("hardware/bytag/20190615") == document
        assert len(fetch.calls) == 1

    def test_first_page_failure_raises(self):
        fetch = scripted((500, {}))
        with pytest.raises(RequestFailure) as excinfo:
            QueryAggregator(fetch).fetch("models")
        assert excinfo.value.operation == "models"
        assert excinfo.value.status_code == 500

    def test_trailing_page_failure_returns_partial(self):
        fetch = scripted(page({"id": 1}, {"id": 2}), (502, {}))
        result = QueryAggregator(fetch).fetch_rows("users")
        assert [r["id"] for r in result] == [1, 2]

    def test_trailing_page_failure_strict(self):
        fetch = scripted(page({"id": 1}), (502, {}))
        with pytest.raises(RequestFailure):
            QueryAggregator(fetch, strict=True).fetch("users")

    def test_page_size_sent_as_limit(self):
        fetch = scripted(page({"id": 1}), page())
        QueryAggregator(fetch, page_size=100).fetch("users")
        assert all(params["limit"] == 100 for _, params in fetch.calls)

    def test_filter_not_mutated(self):
        filters = {"category_id": 1}
        QueryAggregator(scripted(page({"id": 1}), page())).fetch("hardware", filters)
        assert filters == {"category_id": 1}

    def test_list_body_fetched_once(self):
        transport = SnipeTransport("https://snipe.test/api/v1/", "secret")
        session = MagicMock()
        session.get.return_value = MagicMock(status_code=200, **{"json.return_value": [{"id": 1}, {"id": 2}]})
        with patch.object(transport, "_get_session", return_value=session):
            result = QueryAggregator(transport.get).fetch("things")
        assert result == [{"id": 1}, {"id": 2}]
        assert session.get.call_count == 1

    def test_list_body_rows(self):
        fetch = scripted((200, [{"id": 1}]))
        assert QueryAggregator(fetch).fetch_rows("things") == [{"id": 1}]
        assert len(fetch.calls) == 1

    def test_list_continuation_page_ends_pagination(self):
        fetch = scripted(page({"id": 1}), (200, [{"id": 2}]))
        assert QueryAggregator(fetch).fetch_rows("users") == [{"id": 1}]
        assert len(fetch.calls) == 2


class TestSnipeTransport:
    def _response(self, status=200, payload=None):
        resp = MagicMock()
        resp.status_code = status
        resp.json.return_value = payload if payload is not None else {}
        return resp

    def test_session_headers(self):
        transport = SnipeTransport("https://snipe.test/api/v1/", "secret")
        session = transport._get_session()
        assert session.headers["Authorization"] == "Bearer secret"
        assert session.headers["Accept"] == "application/json"
        transport.close()

    def test_get_builds_url_and_params(self):
        transport = SnipeTransport("https://snipe.test/api/v1", "secret", timeout=5)
        session = MagicMock()
        session.get.return_value = self._response(200, {"rows": []})
        with patch.object(transport, "_get_session", return_value=session):
            status, payload = transport.get("hardware", {"category_id": 1})

        assert status == 200
        assert payload == {"rows": []}
        session.get.assert_called_once_with(
            "https://snipe.test/api/v1/hardware", params={"category_id": 1}, timeout=5
        )

    def test_non_json_body(self):
        transport = SnipeTransport("https://snipe.test/api/v1/", "secret")
        resp = self._response(502)
        resp.json.side_effect = ValueError("no json")
        session = MagicMock()
        session.get.return_value = resp
        with patch.object(transport, "_get_session", return_value=session):
            assert transport.get("users") == (502, {})

    def test_list_body_returned_unchanged(self):
        transport = SnipeTransport("https://snipe.test/api/v1/", "secret")
        session = MagicMock()
        session.get.return_value = self._response(200, [{"id": 1}, {"id": 2}])
        with patch.object(transport, "_get_session", return_value=session):
            assert transport.get("things") == (200, [{"id": 1}, {"id": 2}])

    def test_network_error_raises_request_failure(self):
        transport = SnipeTransport("https://snipe.test/api/v1/", "secret")
        session = MagicMock()
        session.get.side_effect = requests.exceptions.ConnectionError("refused")
        with patch.object(transport, "_get_session", return_value=session):
            with pytest.raises(RequestFailure) as excinfo:
                transport.get("users")
        assert excinfo.value.status_code is None
        assert excinfo.value.operation == "users"

    def test_verify_settings(self):
        assert SnipeTransport("https://x/", "t", verify=False)._verify is False
        assert SnipeTransport("https://x/", "t", ca_bundle="/etc/ca.pem")._verify == "/etc/ca.pem"


class TestSnipeCollector:
    def test_name_property(self, collector):
        assert collector.name == "snipe"
        assert collector.display_name == "Snipe-IT Inventory"

    def test_active_laptops_paginated(self, collector, fake_api, active_laptops):
        assert collector.active_laptops() == active_laptops
        # 5 rows in pages of 2, plus the empty terminating page
        assert len(fake_api.calls_for("hardware")) == 4

    def test_collections_fetched_once(self, collector, fake_api):
        collector.active_laptops()
        collector.active_laptops()
        collector.laptops(Cohort.ACTIVE)
        assert len(fake_api.calls_for("hardware")) == 4

    def test_cohorts(self, collector):
        assert [l["id"] for l in collector.laptops("spares")] == [2, 5]
        assert [l["id"] for l in collector.laptops("staff")] == [1, 3, 4]
        assert [l["id"] for l in collector.laptops("archived")] == [9]
        assert [l["id"] for l in collector.laptops("active")] == [1, 2, 3, 4, 5]

    def test_unknown_cohort_means_active(self, collector):
        assert len(collector.laptops("everything")) == 5

    def test_staff_and_spares_partition_active(self, collector):
        staff = {l["id"] for l in collector.staff_laptops()}
        spares = {l["id"] for l in collector.spare_laptops()}
        active = {l["id"] for l in collector.active_laptops()}
        assert staff | spares == active
        assert not staff & spares

    def test_users_have_laptops(self, collector):
        by_name = {u["username"]: u["laptops"] for u in collector.users()}
        assert by_name == {"alice": ["20190615", "42"], "bob": ["20230101"], "carol": None}

    def test_users_cached(self, collector, fake_api):
        assert collector.users() is collector.users()
        assert len(fake_api.calls_for("users")) == 3

    def test_user_filters(self, collector):
        assert [u["username"] for u in collector.users_without_laptops()] == ["carol"]
        assert [u["username"] for u in collector.users_with_multiple_laptops()] == ["alice"]

    def test_laptop_models(self, collector):
        assert [m["name"] for m in collector.laptop_models()] == ["MacBook Pro", "X1", "XPS 13"]

    def test_laptop_manufacturers(self, collector):
        assert collector.laptop_manufacturers() == ["Apple", "Lenovo", "Dell"]

    def test_model_views_cached(self, collector, fake_api):
        laptop_models = collector.laptop_models()
        manufacturers = collector.laptop_manufacturers()
        calls = len(fake_api.calls_for("models"))
        assert collector.laptop_models() is laptop_models
        assert collector.laptop_manufacturers() is manufacturers
        assert len(fake_api.calls_for("models")) == calls

    def test_get_laptop_unexpected_body(self, collector, fake_api):
        fake_api.add_document("hardware/bytag/20190615", [{"id": 1}])
        with pytest.raises(CollectorError):
            collector.get_laptop("20190615")

    def test_get_laptop(self, collector, fake_api):
        fake_api.add_document("hardware/bytag/20190615", {"id": 1, "asset_tag": "20190615"})
        assert collector.get_laptop("20190615")["id"] == 1

    def test_get_unknown_laptop(self, collector, fake_api):
        fake_api.add_document("hardware/bytag/nope", {"status": "error", "messages": "Asset does not exist."})
        with pytest.raises(CollectorError):
            collector.get_laptop("nope")

    def test_first_page_failure_propagates(self, collector, fake_api):
        fake_api.fail("statuslabels", offset=0, status=401)
        with pytest.raises(RequestFailure):
            collector.statuses()

    def test_is_available(self, collector, fake_api):
        assert collector.is_available() is True
        fake_api.fail("statuslabels", offset=0)
        assert collector.is_available() is False

    def test_context_manager_closes_transport(self, fake_api):
        with SnipeCollector(fake_api):
            pass
        assert fake_api.closed is True
