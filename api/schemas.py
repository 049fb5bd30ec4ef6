from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class ResourceModel(BaseModel):
    identifier: str
    location: str


class MetaResourcesResponse(BaseModel):
    resources: List[ResourceModel]


class SummaryResponse(BaseModel):
    total: int
    loaded: int
    failed: List[str] = Field(default_factory=list)
    ready: bool = False


class SortStateModel(BaseModel):
    key: str = "identifier"
    direction: Literal["asc", "desc"] = "asc"


class ChartPointModel(BaseModel):
    identifier: str
    label: str
    metric_a: float
    metric_b: float
    width_a: float
    width_b: float
