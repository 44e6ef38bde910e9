from __future__ import annotations

from datetime import date
from typing import Mapping, Sequence

from pydantic import BaseModel, Field, NonNegativeFloat


class BillingPeriod(BaseModel):
    period_id: str = Field(description="YYYY-MM of the month the window closes in")
    period_start: date
    period_end: date
    effective_start: date
    effective_end: date


class ResourceLeave(BaseModel):
    resource_name: str
    leave_days: float = Field(default=0.0, ge=0)


class MonthlyActuals(BaseModel):
    regional_holidays: int = Field(default=0, ge=0)
    actual_resource_count: int = Field(ge=0)
    resource_leaves: Sequence[ResourceLeave] = Field(default_factory=list)


class PeriodOverride(BaseModel):
    """User edits layered on top of a generated period skeleton."""

    regional_holidays: int | None = Field(default=None, ge=0)
    actual_resource_count: int | None = Field(default=None, ge=0)
    leave_days: Mapping[int, NonNegativeFloat] = Field(
        default_factory=dict, description="Leave days keyed by zero-based resource index"
    )
    period_start: date | None = None
    period_end: date | None = None


class ResourceBilling(BaseModel):
    resource_name: str
    leave_days: float
    billable_days: float
    amount: float


class BillingResult(BaseModel):
    expected_amount_source: float
    expected_amount_usd: float | None = None
    billable_days_per_resource: int
    daily_rate: float
    monthly_rate: float
    working_days: int
    total_billable_resource_days: float
    resources: Sequence[ResourceBilling] = Field(default_factory=list)


class BillingPreview(BaseModel):
    """Coarse figure without leave adjustment, for at-a-glance displays."""

    amount_source: float
    amount_usd: float | None = None
    billable_days_per_resource: int
    daily_rate: float
    monthly_rate: float
    resource_count: int


__all__ = [
    "BillingPeriod",
    "BillingPreview",
    "BillingResult",
    "MonthlyActuals",
    "PeriodOverride",
    "ResourceBilling",
    "ResourceLeave",
]
