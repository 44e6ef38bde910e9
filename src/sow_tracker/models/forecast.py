from __future__ import annotations

from typing import Mapping, Sequence

from pydantic import BaseModel, Field


class ForecastColumn(BaseModel):
    id: str
    display: str
    is_quarterly: bool = False


class ContractForecast(BaseModel):
    contract_id: str
    project_name: str
    vendor_name: str
    billing: Mapping[str, float] = Field(default_factory=dict)


class ManagerForecast(BaseModel):
    manager: str
    totals: Mapping[str, float] = Field(default_factory=dict)
    contracts: Sequence[ContractForecast] = Field(default_factory=list)


class ForecastTable(BaseModel):
    columns: Sequence[ForecastColumn] = Field(default_factory=list)
    managers: Sequence[ManagerForecast] = Field(default_factory=list)
    grand_totals: Mapping[str, float] = Field(default_factory=dict)


__all__ = ["ContractForecast", "ForecastColumn", "ForecastTable", "ManagerForecast"]
