"""
OpenFalcon Datasource

Entry point used by the dashboard: turns panel queries into /render
requests, runs them through the transport and hands back canonical
series. All request building and response shaping lives in the
queries package; this class only wires it to configuration and transport.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Union

from .config import DatasourceConfig
from .http_client import FalconHttpClient
from .queries import (
    ROUND_DOWN,
    ROUND_UP,
    build_params,
    convert_datapoints_to_ms,
    encode_component,
    join_params,
    translate_time,
)
from .queries.constants import ANNOTATION_MAX_DATA_POINTS, FORM_CONTENT_TYPE
from .schemas import Annotation, QueryOptions, TimeRange
from .templating import TemplateVariables

logger = logging.getLogger("openfalcon.datasource")


class OpenFalconDatasource:
    """Dashboard datasource backed by an OpenFalcon query API."""

    def __init__(
        self,
        config: DatasourceConfig,
        transport=None,
        variables: Optional[TemplateVariables] = None,
        clock: Optional[Callable[[], Any]] = None,
    ):
        """
        Args:
            config: Datasource configuration
            transport: Object with request(options) -> {"status", "data"};
                defaults to FalconHttpClient
            variables: Template variable lookup with replace(expression, scoped_vars)
            clock: Returns the instant "now" expressions are anchored to;
                defaults to the current time
        """
        self.config = config
        self.transport = transport or FalconHttpClient(timeout=config.timeout, verify_tls=config.verify_tls)
        self.variables = variables or TemplateVariables()
        self.clock = clock

    @property
    def url(self) -> str:
        return self.config.url

    def translate_time(self, boundary, direction=None):
        now = self.clock() if self.clock else None
        return translate_time(boundary, direction, now=now, tz=self.config.timezone)

    # ---------- Render queries ----------

    def query(self, options: Union[QueryOptions, Dict[str, Any]]):
        """
        Run a panel query.

        Returns:
            Render URL string for png requests, otherwise the normalized
            response ({"data": [canonical series, ...], ...})

        Raises:
            DateMathError, TargetResolutionError: Invalid panel query
            TransportError: Backend request failed
        """
        if not isinstance(options, QueryOptions):
            options = QueryOptions.model_validate(options)

        graph_options = {
            "from": self.translate_time(options.range.from_, ROUND_DOWN),
            "until": self.translate_time(options.range.to, ROUND_UP),
            "targets": options.targets,
            "format": options.format,
            "cacheTimeout": options.cache_timeout or self.config.cache_timeout,
            "maxDataPoints": options.max_data_points,
            "rawData": options.raw_data,
        }
        params = build_params(graph_options, self.variables, options.scoped_vars)
        logger.debug(f"Render query for {self.config.name}: {params}")

        if options.format == "png":
            return f"{self.url}/render?{join_params(params)}"

        http_options = {"method": self.config.render_method, "url": "/render"}
        if http_options["method"] == "GET":
            http_options["url"] += "?" + join_params(params)
        else:
            http_options["data"] = join_params(params)
            http_options["headers"] = {"Content-Type": FORM_CONTENT_TYPE}

        return convert_datapoints_to_ms(self._request(http_options))

    # ---------- Metric discovery ----------

    def metric_find_query(self, query: str) -> List[Dict[str, Any]]:
        """Find metrics matching `query`: [{"text", "expandable"}, ...]."""
        interpolated = encode_component(self.variables.replace(query))
        results = self._request({"method": "GET", "url": f"/metrics/find/?query={interpolated}"})
        return [
            {"text": metric.get("text"), "expandable": bool(metric.get("expandable"))}
            for metric in results.get("data") or []
        ]

    def test_datasource(self) -> Dict[str, str]:
        self.metric_find_query("")
        return {"status": "success", "message": "Data source is working", "title": "Success"}

    # ---------- Annotations and events ----------

    def annotation_query(self, annotation: Union[Annotation, Dict[str, Any]], range_raw) -> List[Dict[str, Any]]:
        """
        Build annotation entries for a time range.

        A definition with a target is drawn from that series (one entry per
        datapoint with a truthy value); otherwise from backend events matching
        its tags.
        """
        definition = annotation if isinstance(annotation, Annotation) else Annotation.model_validate(annotation)

        if definition.target:
            target = self.variables.replace(definition.target)
            result = self.query({
                "range": range_raw,
                "targets": [{"target": target}],
                "format": "json",
                "maxDataPoints": ANNOTATION_MAX_DATA_POINTS,
            })
            entries = []
            for series in result.get("data", []) if result else []:
                for datapoint in series["datapoints"]:
                    if not datapoint[0]:
                        continue
                    entries.append({"annotation": annotation, "time": datapoint[1], "title": series.get("target")})
            return entries

        tags = self.variables.replace(definition.tags)
        results = self.events(range_raw, tags)
        return [
            {
                "annotation": annotation,
                "time": event["when"] * 1000,
                "title": event.get("what"),
                "tags": event.get("tags"),
                "text": event.get("data"),
            }
            for event in results.get("data") or []
        ]

    def events(self, range_raw, tags: Optional[str] = None) -> Dict[str, Any]:
        """Fetch backend events in a range, boundaries translated without rounding."""
        time_range = range_raw if isinstance(range_raw, TimeRange) else TimeRange.model_validate(range_raw)
        url = (
            "/events/get_data"
            f"?from={encode_component(self.translate_time(time_range.from_))}"
            f"&until={encode_component(self.translate_time(time_range.to))}"
        )
        if tags:
            url += f"&tags={encode_component(tags)}"
        return self._request({"method": "GET", "url": url})

    # ---------- Dashboards ----------

    def list_dashboards(self, query: Optional[str] = None) -> List[Dict[str, Any]]:
        results = self._request({"method": "GET", "url": "/dashboard/find/", "params": {"query": query or ""}})
        return results["data"]["dashboards"]

    def load_dashboard(self, name: str) -> Dict[str, Any]:
        return self._request({"method": "GET", "url": f"/dashboard/load/{encode_component(name)}"})

    # ---------- Transport ----------

    def _request(self, options: Dict[str, Any]) -> Dict[str, Any]:
        """Attach auth and base URL, then hand off to the transport."""
        options = dict(options)
        if self.config.basic_auth:
            options["headers"] = dict(options.get("headers") or {})
            options["headers"]["Authorization"] = self.config.basic_auth
        options["url"] = self.url + options["url"]

        return self.transport.request(options)
