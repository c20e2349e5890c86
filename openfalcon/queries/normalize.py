"""
Render response normalization.

The backend answers /render with rows like

    {"endpoint": "host1", "counter": "load.1min",
     "Values": [{"timestamp": 1445000000, "value": 0.5}, ...]}

which are reshaped into canonical series

    {"target": "host1.load.1min", "datapoints": [[0.5, 1445000000000], ...]}

with timestamps converted from seconds to milliseconds. Map queries
(rows carrying "chartType") are wrapped as a single series instead.
"""

from typing import Any, Dict, List, Optional


def is_map_payload(rows: List[Dict[str, Any]]) -> bool:
    return "chartType" in rows[0]


def build_series(row: Dict[str, Any]) -> Dict[str, Any]:
    """One canonical series from a backend row; timestamps stay in seconds."""
    datapoints = [[point.get("value"), point.get("timestamp")] for point in row["Values"] or []]
    return {
        "target": f"{row.get('endpoint')}.{row.get('counter')}",
        "datapoints": datapoints,
    }


def scale_timestamps(series_list: List[Dict[str, Any]]) -> None:
    """Convert every datapoint timestamp from seconds to milliseconds, in place."""
    for series in series_list:
        for point in series["datapoints"]:
            point[1] *= 1000


def convert_datapoints_to_ms(result: Optional[Dict[str, Any]]):
    """
    Normalize a raw /render response.

    Args:
        result: Response dict with a "data" list of backend rows

    Returns:
        - [] if the response or its data is missing
        - the response itself if data is empty
        - a copy whose "data" is [{"datapoints": rows}] for map payloads
        - a copy whose "data" is the list of canonical series otherwise;
          rows without "Values" are skipped
    """
    if not result or result.get("data") is None:
        return []

    rows = result["data"]
    if not rows:
        return result

    normalized = dict(result)
    if is_map_payload(rows):
        normalized["data"] = [{"datapoints": rows}]
        return normalized

    series_list = [build_series(row) for row in rows if "Values" in row]
    scale_timestamps(series_list)
    normalized["data"] = series_list
    return normalized
