from __future__ import annotations

from datetime import date
from typing import Sequence

from pydantic import BaseModel, ConfigDict, Field

from .billing import BillingResult, ResourceLeave
from .contract import BillingRate


class AnomalyClassification(BaseModel):
    is_anomalous: bool
    deviation_ratio: float
    expected_usd: float
    actual_usd: float


class ExplanationRequest(BaseModel):
    vendor_name: str
    sow_start_date: date
    sow_end_date: date
    billing_rates: Sequence[BillingRate]
    number_of_resources: int
    actual_number_of_resources: int
    billing_period_start_date: date
    billing_period_end_date: date
    regional_holidays: int
    resource_leaves: Sequence[ResourceLeave] = Field(default_factory=list)
    monthly_rate: float
    daily_rate: float
    expected_billing_amount: float
    actual_billing_amount: float
    usd_conversion_rate: float | None = None
    amount_currency: str = Field(default="USD", description="Currency of the expected and actual amounts")
    system_flag: bool


class ExplanationVerdict(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_anomaly: bool = Field(alias="isAnomaly")
    explanation: str


class AnomalyReport(BaseModel):
    is_anomaly: bool = Field(description="Verdict reported to callers (from the explainer)")
    system_flag: bool = Field(description="Deterministic threshold classification")
    explainer_verdict: bool
    deviation_ratio: float
    expected_amount: float
    actual_amount: float
    explanation: str
    billing: BillingResult


__all__ = [
    "AnomalyClassification",
    "AnomalyReport",
    "ExplanationRequest",
    "ExplanationVerdict",
]
