"""Unit tests for OpenFalconDatasource

Tests the datasource contract with a mocked transport:
- Render queries (POST/GET/png)
- Metric discovery
- Annotations and events
- Dashboard endpoints
"""
import pytest
import pandas as pd
from unittest.mock import Mock

from openfalcon.config import DatasourceConfig
from openfalcon.datasource import OpenFalconDatasource
from openfalcon.exceptions import DateMathError, TransportError, UnknownSeriesReferenceError

BASE_URL = "http://falcon.example:9966"


def _epoch(text):
    return int(pd.Timestamp(text, tz="UTC").timestamp())


def _last_request(transport):
    return transport.request.call_args[0][0]


class TestQuery:

    def test_post_render_request(self, datasource, transport):
        datasource.query({
            "range": {"from": "now-1h", "to": "now"},
            "targets": [{"target": "$host.cpu.idle"}, {"target": "#A.max"}],
            "maxDataPoints": 800,
        })

        request = _last_request(transport)
        assert request["method"] == "POST"
        assert request["url"] == f"{BASE_URL}/render"
        assert request["data"] == (
            "target=srv01.cpu.idle&target=srv01.cpu.idle.max"
            "&from=-1h&until=now&format=json&maxDataPoints=800&cacheTimeout=60"
        )
        assert request["headers"] == {
            "Content-Type": "application/x-www-form-urlencoded",
            "Authorization": "Basic dXNlcjpwYXNz",
        }

    def test_get_render_request(self, transport, variables):
        config = DatasourceConfig(url=BASE_URL, render_method="GET")
        datasource = OpenFalconDatasource(config, transport=transport, variables=variables)

        datasource.query({"range": {"from": "now-5m", "to": "now"}, "targets": [{"target": "a"}]})

        request = _last_request(transport)
        assert request["method"] == "GET"
        assert request["url"] == f"{BASE_URL}/render?target=a&from=-5min&until=now&format=json"
        assert "data" not in request
        assert "headers" not in request

    def test_non_get_method_sends_form_body(self, transport, variables):
        config = DatasourceConfig(url=BASE_URL, render_method="put")
        datasource = OpenFalconDatasource(config, transport=transport, variables=variables)

        datasource.query({"range": {"from": "now-5m", "to": "now"}, "targets": [{"target": "a"}]})

        request = _last_request(transport)
        assert request["method"] == "PUT"
        assert request["url"] == f"{BASE_URL}/render"
        assert request["data"] == "target=a&from=-5min&until=now&format=json"
        assert request["headers"] == {"Content-Type": "application/x-www-form-urlencoded"}

    def test_absolute_range_is_widened(self, datasource, transport):
        datasource.query({
            "range": {"from": "2015-10-21 15:29:30", "to": "2015-10-21 16:29:30"},
            "targets": [{"target": "a"}],
        })

        data = _last_request(transport)["data"]
        assert f"from={_epoch('2015-10-21 15:28:30')}" in data
        assert f"until={_epoch('2015-10-21 16:30:30')}" in data

    def test_rounded_range_uses_clock(self, datasource, transport):
        datasource.query({"range": {"from": "now-1d/d", "to": "now-1d/d"}, "targets": [{"target": "a"}]})

        data = _last_request(transport)["data"]
        assert f"from={_epoch('2015-10-20 00:00:00')}" in data
        assert f"until={_epoch('2015-10-21 00:00:59')}" in data

    def test_query_cache_timeout_overrides_config(self, datasource, transport):
        datasource.query({"range": {"from": "now-1h"}, "targets": [{"target": "a"}], "cacheTimeout": 300})
        assert _last_request(transport)["data"].endswith("cacheTimeout=300")

    def test_png_returns_render_url(self, datasource, transport):
        url = datasource.query({
            "range": {"from": "now-1h", "to": "now"},
            "targets": [{"target": "a"}],
            "format": "png",
        })

        assert url == f"{BASE_URL}/render?target=a&from=-1h&until=now&format=png&cacheTimeout=60"
        transport.request.assert_not_called()

    def test_response_normalized(self, datasource, transport, render_rows):
        transport.request.return_value = {"status": 200, "data": render_rows}

        result = datasource.query({"range": {"from": "now-1h"}, "targets": [{"target": "*.load.1min"}]})

        assert result["data"][0] == {
            "target": "srv01.load.1min",
            "datapoints": [[0.5, 1445444940000], [0.75, 1445445000000]],
        }

    def test_invalid_boundary_raises_before_request(self, datasource, transport):
        with pytest.raises(DateMathError):
            datasource.query({"range": {"from": "not a date"}, "targets": [{"target": "a"}]})
        transport.request.assert_not_called()

    def test_unknown_reference_raises(self, datasource, transport):
        with pytest.raises(UnknownSeriesReferenceError):
            datasource.query({"range": {"from": "now-1h"}, "targets": [{"target": "#C"}]})
        transport.request.assert_not_called()

    def test_transport_error_propagates(self, datasource, transport):
        transport.request.side_effect = TransportError("boom", f"{BASE_URL}/render", 502)
        with pytest.raises(TransportError):
            datasource.query({"range": {"from": "now-1h"}, "targets": [{"target": "a"}]})

    def test_no_auth_header_without_basic_auth(self, transport, variables):
        datasource = OpenFalconDatasource(DatasourceConfig(url=BASE_URL), transport=transport, variables=variables)
        datasource.query({"range": {"from": "now-1h"}, "targets": [{"target": "a"}]})
        assert "Authorization" not in _last_request(transport)["headers"]


class TestMetricFind:

    def test_metric_find_query(self, datasource, transport):
        transport.request.return_value = {"status": 200, "data": [
            {"text": "cpu", "expandable": 1},
            {"text": "mem.free", "expandable": 0},
            {"text": "disk"},
        ]}

        result = datasource.metric_find_query("$host.*")

        assert _last_request(transport)["url"] == f"{BASE_URL}/metrics/find/?query=srv01.*"
        assert result == [
            {"text": "cpu", "expandable": True},
            {"text": "mem.free", "expandable": False},
            {"text": "disk", "expandable": False},
        ]

    def test_query_is_encoded(self, datasource, transport):
        datasource.metric_find_query("$hosts.cpu")
        assert _last_request(transport)["url"].endswith("?query=%7Bsrv01%2Csrv02%7D.cpu")

    def test_test_datasource(self, datasource, transport):
        assert datasource.test_datasource() == {
            "status": "success",
            "message": "Data source is working",
            "title": "Success",
        }
        assert _last_request(transport)["url"] == f"{BASE_URL}/metrics/find/?query="


class TestAnnotations:

    def test_series_annotation(self, datasource, transport):
        transport.request.return_value = {"status": 200, "data": [{
            "endpoint": "srv01",
            "counter": "deploy.count",
            "Values": [
                {"timestamp": 1445444940, "value": 0},
                {"timestamp": 1445445000, "value": 2},
                {"timestamp": 1445445060, "value": None},
            ],
        }]}
        annotation = {"name": "deploys", "target": "$host.deploy.count"}

        entries = datasource.annotation_query(annotation, {"from": "now-1h", "to": "now"})

        assert entries == [{"annotation": annotation, "time": 1445445000000, "title": "srv01.deploy.count"}]
        request = _last_request(transport)
        assert "target=srv01.deploy.count" in request["data"]
        assert "maxDataPoints=100" in request["data"]

    def test_event_annotation(self, datasource, transport):
        transport.request.return_value = {"status": 200, "data": [
            {"when": 1445444940, "what": "release", "tags": "deploy,srv01", "data": "v1.2"},
        ]}
        annotation = {"name": "releases", "tags": "deploy $host"}

        entries = datasource.annotation_query(annotation, {"from": "now-1h", "to": "now"})

        assert entries == [{
            "annotation": annotation,
            "time": 1445444940000,
            "title": "release",
            "tags": "deploy,srv01",
            "text": "v1.2",
        }]
        request = _last_request(transport)
        assert request["method"] == "GET"
        assert request["url"] == f"{BASE_URL}/events/get_data?from=-1h&until=now&tags=deploy%20srv01"

    def test_events_without_tags(self, datasource, transport):
        datasource.events({"from": "2015-10-21 15:29:30", "to": "now"})
        # No rounding, so no minute widening
        assert _last_request(transport)["url"] == (
            f"{BASE_URL}/events/get_data?from={_epoch('2015-10-21 15:29:30')}&until=now"
        )

    def test_event_annotation_with_no_events(self, datasource, transport):
        transport.request.return_value = {"status": 200, "data": None}
        assert datasource.annotation_query({"tags": "deploy"}, {"from": "now-1h"}) == []


class TestDashboards:

    def test_list_dashboards(self, datasource, transport):
        transport.request.return_value = {"status": 200, "data": {"dashboards": [{"name": "hosts"}]}}

        assert datasource.list_dashboards("ho") == [{"name": "hosts"}]
        request = _last_request(transport)
        assert request["url"] == f"{BASE_URL}/dashboard/find/"
        assert request["params"] == {"query": "ho"}

    def test_list_dashboards_without_query(self, datasource, transport):
        transport.request.return_value = {"status": 200, "data": {"dashboards": []}}
        datasource.list_dashboards()
        assert _last_request(transport)["params"] == {"query": ""}

    def test_load_dashboard(self, datasource, transport):
        transport.request.return_value = {"status": 200, "data": {"dashboard": {}}}
        datasource.load_dashboard("my hosts")
        assert _last_request(transport)["url"] == f"{BASE_URL}/dashboard/load/my%20hosts"


class TestDefaults:

    def test_default_transport(self):
        datasource = OpenFalconDatasource(DatasourceConfig(url=BASE_URL, timeout=3, verify_tls=False))
        assert datasource.transport.timeout == 3
        assert datasource.transport.verify_tls is False

    def test_request_options_not_mutated(self, datasource, transport):
        options = {"method": "GET", "url": "/metrics/find/?query=a"}
        datasource._request(options)
        assert options == {"method": "GET", "url": "/metrics/find/?query=a"}
