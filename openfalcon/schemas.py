"""
Datasource request models - pydantic models for panel queries

Field aliases follow the dashboard's JSON names (maxDataPoints, scopedVars, ...)
so panel query payloads validate as-is.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

TimeBoundary = Union[str, datetime]


class QueryTarget(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    target: Optional[str] = None
    hide: bool = False
    ref_id: Optional[str] = Field(None, alias="refId")


class TimeRange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: TimeBoundary = Field(..., alias="from")
    to: TimeBoundary = "now"


class QueryOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    range: TimeRange
    targets: List[QueryTarget] = []
    format: Optional[str] = None
    max_data_points: Optional[int] = Field(None, alias="maxDataPoints")
    cache_timeout: Optional[Union[int, str]] = Field(None, alias="cacheTimeout")
    raw_data: Optional[bool] = Field(None, alias="rawData")
    scoped_vars: Optional[Dict[str, Any]] = Field(None, alias="scopedVars")


class Annotation(BaseModel):
    """Annotation definition: series-based when `target` is set, else event-based."""

    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    target: Optional[str] = None
    tags: Optional[str] = None
