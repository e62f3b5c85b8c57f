from __future__ import annotations

from datetime import date as calendar_date
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import Field, model_validator

from src.shared.base import BaseSchema
from src.shared.channels import ALL_BRANDS, CHANNELS

Quarter = Literal["Q1", "Q2", "Q3", "Q4"]


class AnnualView(BaseSchema):
    view: Literal["annual"] = "annual"
    year: int = Field(..., ge=1970, le=2999)


class QuarterlyView(BaseSchema):
    view: Literal["quarterly"] = "quarterly"
    year: int = Field(..., ge=1970, le=2999)
    quarter: Quarter


class MonthlyView(BaseSchema):
    view: Literal["monthly"] = "monthly"
    year: int = Field(..., ge=1970, le=2999)
    month: int = Field(..., ge=1, le=12)


class CustomRangeView(BaseSchema):
    view: Literal["custom"] = "custom"
    start_date: calendar_date
    end_date: calendar_date

    @model_validator(mode="after")
    def _check_order(self) -> "CustomRangeView":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


View = Annotated[
    Union[AnnualView, QuarterlyView, MonthlyView, CustomRangeView],
    Field(discriminator="view"),
]


class ViewSelector(BaseSchema):
    """What to report on and the brand/channel universe the caller may see.

    When the unrestricted flags are left unset, an axis is only filtered if the
    caller supplied a non-empty list for it.
    """

    view: View
    brand: str = ALL_BRANDS
    available_brands: List[str] = Field(default_factory=list)
    available_channels: List[str] = Field(default_factory=lambda: list(CHANNELS))
    brands_unrestricted: Optional[bool] = None
    channels_unrestricted: Optional[bool] = None

    @model_validator(mode="after")
    def _default_restrictions(self) -> "ViewSelector":
        if self.brands_unrestricted is None:
            self.brands_unrestricted = not self.available_brands
        if self.channels_unrestricted is None:
            self.channels_unrestricted = (
                "available_channels" not in self.model_fields_set or not self.available_channels
            )
        return self


class NormalizedRecord(BaseSchema):
    date: calendar_date
    brand: str
    brand_key: str
    channel: str
    channel_key: str
    revenue: float
    metadata: Dict[str, Any] = Field(default_factory=dict)


class AggregatedBucket(BaseSchema):
    date: calendar_date
    brand: str
    brand_key: str
    channel: str
    channel_key: str
    revenue: float
    count: int
    metadata: Dict[str, Any] = Field(default_factory=dict)


class DroppedRow(BaseSchema):
    index: int
    reason: str
    record: Dict[str, Any] = Field(default_factory=dict)


class NormalizationDiagnostics(BaseSchema):
    input_count: int = 0
    kept_count: int = 0
    filtered_count: int = 0
    dropped_count: int = 0
    dropped_by_reason: Dict[str, int] = Field(default_factory=dict)
    dropped_samples: List[DroppedRow] = Field(default_factory=list)


class ResolvedTargets(BaseSchema):
    channel_targets100: Dict[str, float]
    channel_targets85: Dict[str, float]
    total_target100: float
    total_target85: float


class ProjectionScenario(BaseSchema):
    value: float
    percent85: float
    percent100: float


class ProjectionScenarios(BaseSchema):
    conservative: ProjectionScenario
    realistic: ProjectionScenario
    optimistic: ProjectionScenario


class KpiResult(BaseSchema):
    total_revenue: float
    channel_revenues: Dict[str, float]
    total_target85: float
    total_target100: float
    channel_targets85: Dict[str, float]
    channel_targets100: Dict[str, float]
    run_rate: float
    projection: float
    projection_percent85: float
    projection_percent100: float
    projection_scenarios: ProjectionScenarios
    days_in_period: int
    days_elapsed: int
    days_remaining: int
    kpi_achievement: float
    achievement100: float
    gap_to_kpi: float
    gap_to100: float
    channel_achievements: Dict[str, float]
    aggregated_records: List[AggregatedBucket]
    available_channels: List[str]
    diagnostics: NormalizationDiagnostics
