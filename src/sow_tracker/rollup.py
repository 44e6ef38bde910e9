from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Iterable, Sequence

from .billing import calendar_month_billing, normalize_to_usd
from .dictionaries import QUARTER_END_MONTHS
from .models.contract import Contract
from .models.forecast import ContractForecast, ForecastColumn, ForecastTable, ManagerForecast
from .working_days import iter_months


def forecast_columns(contracts: Sequence[Contract]) -> list[ForecastColumn]:
    if not contracts:
        return []
    start = min(contract.start_date for contract in contracts)
    end = max(contract.end_date for contract in contracts)
    columns: list[ForecastColumn] = []
    for month in iter_months(start, end):
        columns.append(ForecastColumn(id=month.strftime("%Y-%m"), display=month.strftime("%b %Y")))
        if month.month in QUARTER_END_MONTHS:
            quarter = (month.month - 1) // 3 + 1
            columns.append(
                ForecastColumn(
                    id=f"{month.year}-Q{quarter}",
                    display=f"Q{quarter} {month.year} Total",
                    is_quarterly=True,
                )
            )
    return columns


def _contract_forecast(contract: Contract, columns: Sequence[ForecastColumn]) -> ContractForecast:
    billing: dict[str, float] = {}
    quarter_sum = 0.0
    for column in columns:
        if column.is_quarterly:
            billing[column.id] = quarter_sum
            quarter_sum = 0.0
            continue
        year, month = (int(part) for part in column.id.split("-"))
        amount = calendar_month_billing(contract, date(year, month, 1))
        billing[column.id] = amount
        quarter_sum += amount
    return ContractForecast(
        contract_id=contract.id,
        project_name=contract.project_name,
        vendor_name=contract.vendor_name,
        billing=billing,
    )


def aggregate_by_manager_and_period(contracts: Sequence[Contract]) -> ForecastTable:
    """Monthly and quarterly billing forecast grouped by client manager.

    Columns span every calendar month from the earliest contract start to the
    latest contract end, with a quarter total after each March, June,
    September and December. A quarter column sums the months since the
    previous quarter column, so a span starting mid-quarter yields a partial
    first quarter and months after the last quarter end get no total.
    """
    columns = forecast_columns(contracts)
    if not columns:
        return ForecastTable()

    by_manager: dict[str, list[Contract]] = defaultdict(list)
    for contract in contracts:
        by_manager[contract.client_manager].append(contract)

    grand_totals = {column.id: 0.0 for column in columns}
    managers: list[ManagerForecast] = []
    for manager in sorted(by_manager):
        totals = {column.id: 0.0 for column in columns}
        rows = [_contract_forecast(contract, columns) for contract in by_manager[manager]]
        for row in rows:
            for column_id, amount in row.billing.items():
                totals[column_id] += amount
        for column_id, amount in totals.items():
            grand_totals[column_id] += amount
        managers.append(ManagerForecast(manager=manager, totals=totals, contracts=rows))

    return ForecastTable(columns=columns, managers=managers, grand_totals=grand_totals)


def project_key(contract: Contract) -> str:
    return f"{contract.vendor_name} ({contract.project_name})"


def rate_history_by_year(
    contracts: Iterable[Contract],
    conversion_rate: float | None = None,
) -> list[dict[str, float]]:
    """Per-year rate per resource for each project, in USD when a rate is given."""
    rows: dict[int, dict[str, float]] = {}
    for contract in contracts:
        key = project_key(contract)
        for rate in contract.billing_rates:
            value = normalize_to_usd(rate.rate_per_resource, conversion_rate)
            rows.setdefault(rate.year, {"year": rate.year})[key] = value
    return [rows[year] for year in sorted(rows)]


def contracts_for_manager(contracts: Iterable[Contract], manager: str | None = None) -> list[Contract]:
    selected = [c for c in contracts if manager is None or c.client_manager == manager]
    return sorted(selected, key=lambda contract: contract.start_date)


def manager_names(contracts: Iterable[Contract]) -> list[str]:
    return sorted({contract.client_manager for contract in contracts})


__all__ = [
    "aggregate_by_manager_and_period",
    "contracts_for_manager",
    "forecast_columns",
    "manager_names",
    "project_key",
    "rate_history_by_year",
]
