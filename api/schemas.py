from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field


class ThresholdPairModel(BaseModel):
    green: float
    yellow: float


class DashboardFiltersModel(BaseModel):
    vendor: str = "all"
    category: str = "all"
    sub_category: str = "all"
    bu: str = "all"
    project: str = "all"
    tiering: str = "all"
    region: str = "all"
    period: str = "Last 12 months"
    date_from: str = "2015-01-01"
    date_to: str = "2035-12-31"
    thresholds: Dict[str, ThresholdPairModel] = Field(default_factory=dict)


class MultiSelectFiltersModel(BaseModel):
    vendors: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    sub_categories: List[str] = Field(default_factory=list)
    activities: List[str] = Field(default_factory=list)
    tierings: List[str] = Field(default_factory=list)
    regions: List[str] = Field(default_factory=list)
    thresholds: Dict[str, ThresholdPairModel] = Field(default_factory=dict)


class MetaOptionsResponse(BaseModel):
    vendors: List[str]
    categories: List[str]
    sub_categories: List[str]
    activities: List[str]
    business_units: List[str]
    projects: List[str]
    tierings: List[str]
    regions: List[str]
