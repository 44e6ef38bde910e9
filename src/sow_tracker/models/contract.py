from __future__ import annotations

from datetime import date
from typing import Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class BillingRate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    year: int = Field(ge=2000)
    rate_per_resource: float = Field(ge=0, alias="ratePerResource")


class Contract(BaseModel):
    """A vendor Statement of Work as stored in the ``sows`` collection."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "sow-1",
                "projectName": "Project Phoenix",
                "vendorName": "Innovate Solutions",
                "vendorManager": "John Smith",
                "clientManager": "Alice Johnson",
                "purchaseOrderNumber": "PO-2024-001",
                "startDate": "2024-01-01",
                "endDate": "2024-12-31",
                "numberOfResources": 5,
                "billingRates": [
                    {"year": 2023, "ratePerResource": 110000},
                    {"year": 2024, "ratePerResource": 120000},
                ],
            }
        },
    )

    id: str
    project_name: str = Field(alias="projectName")
    vendor_name: str = Field(alias="vendorName")
    vendor_manager: str = Field(default="", alias="vendorManager")
    client_manager: str = Field(default="", alias="clientManager")
    purchase_order_number: str | None = Field(default=None, alias="purchaseOrderNumber")
    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    number_of_resources: int = Field(ge=1, alias="numberOfResources")
    billing_rates: Sequence[BillingRate] = Field(default_factory=list, alias="billingRates")

    @field_validator("billing_rates")
    @classmethod
    def _unique_years(cls, rates: Sequence[BillingRate]) -> list[BillingRate]:
        years = [rate.year for rate in rates]
        duplicates = sorted({year for year in years if years.count(year) > 1})
        if duplicates:
            raise ValueError(f"Duplicate billing rate years: {duplicates}")
        return sorted(rates, key=lambda rate: rate.year)

    @model_validator(mode="after")
    def _check_span(self) -> "Contract":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


__all__ = ["BillingRate", "Contract"]
