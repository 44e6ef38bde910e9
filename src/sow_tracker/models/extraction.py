from __future__ import annotations

import uuid
from datetime import date
from typing import Any, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .contract import BillingRate, Contract


class ContractDraft(BaseModel):
    """Best-effort contract fields returned by document extraction.

    Every field is optional; ``to_contract`` fills the gaps with the same
    defaults a blank contract form starts from.
    """

    model_config = ConfigDict(populate_by_name=True)

    project_name: str = Field(default="", alias="projectName")
    vendor_name: str = Field(default="", alias="vendorName")
    client_manager_name: str = Field(default="", alias="clientManagerName")
    vendor_manager_name: str = Field(default="", alias="vendorManagerName")
    purchase_order_number: str | None = Field(default=None, alias="purchaseOrderNumber")
    sow_start_date: date | None = Field(default=None, alias="sowStartDate")
    sow_end_date: date | None = Field(default=None, alias="sowEndDate")
    billing_rates: Sequence[BillingRate] = Field(default_factory=list, alias="billingRates")
    number_of_resources: int | None = Field(default=None, alias="numberOfResources")

    @field_validator(
        "project_name",
        "vendor_name",
        "client_manager_name",
        "vendor_manager_name",
        mode="before",
    )
    @classmethod
    def _blank_if_missing(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    @field_validator("purchase_order_number", mode="before")
    @classmethod
    def _none_if_blank(cls, value: Any) -> str | None:
        if value is None or not str(value).strip():
            return None
        return str(value).strip()

    @field_validator("sow_start_date", "sow_end_date", mode="before")
    @classmethod
    def _lenient_date(cls, value: Any) -> date | None:
        if value in (None, ""):
            return None
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value)[:10])
        except ValueError:
            return None

    @field_validator("billing_rates", mode="before")
    @classmethod
    def _drop_unusable_rates(cls, value: Any) -> list[Any]:
        if not isinstance(value, list):
            return []
        rates: dict[int, Any] = {}
        for entry in value:
            if not isinstance(entry, dict):
                continue
            year = entry.get("year")
            rate = entry.get("ratePerResource", entry.get("rate_per_resource"))
            if not isinstance(year, (int, float)) or year < 2000:
                continue
            if isinstance(rate, (int, float)) and rate >= 0:
                rates[int(year)] = {"year": int(year), "ratePerResource": float(rate)}
        return [rates[year] for year in sorted(rates)]

    @field_validator("number_of_resources", mode="before")
    @classmethod
    def _positive_count(cls, value: Any) -> int | None:
        if isinstance(value, (int, float)) and value >= 1:
            return int(value)
        return None

    def to_contract(self, *, as_of: date, contract_id: str | None = None) -> Contract:
        start = self.sow_start_date or as_of
        end = self.sow_end_date if self.sow_end_date and self.sow_end_date >= start else start
        rates = list(self.billing_rates) or [BillingRate(year=start.year, rate_per_resource=0)]
        return Contract(
            id=contract_id or str(uuid.uuid4()),
            project_name=self.project_name,
            vendor_name=self.vendor_name,
            vendor_manager=self.vendor_manager_name,
            client_manager=self.client_manager_name,
            purchase_order_number=self.purchase_order_number,
            start_date=start,
            end_date=end,
            number_of_resources=self.number_of_resources or 1,
            billing_rates=rates,
        )


__all__ = ["ContractDraft"]
