"""Expected monthly billing for a contract period.

Currency convention: a conversion rate is expressed as source-currency units
per 1 USD, so ``amount_usd = amount_source / rate``. A missing, zero or
negative rate means no conversion is applied.
"""
from __future__ import annotations

from datetime import date

from .dictionaries import WORKING_DAYS_PER_MONTH
from .models.billing import (
    BillingPeriod,
    BillingPreview,
    BillingResult,
    MonthlyActuals,
    ResourceBilling,
)
from .models.contract import Contract
from .periods import contract_span
from .rates import resolve_rate
from .working_days import interval_overlap, month_bounds, working_days


def is_usable_rate(conversion_rate: float | None) -> bool:
    return conversion_rate is not None and conversion_rate > 0


def convert_to_usd(amount: float, conversion_rate: float | None) -> float | None:
    if not is_usable_rate(conversion_rate):
        return None
    return amount / conversion_rate


def normalize_to_usd(amount: float, conversion_rate: float | None) -> float:
    """Like ``convert_to_usd`` but falls back to the unconverted amount."""
    converted = convert_to_usd(amount, conversion_rate)
    return amount if converted is None else converted


def daily_rate_for(contract: Contract, year: int) -> tuple[float, float]:
    monthly_rate = resolve_rate(contract.billing_rates, year)
    return monthly_rate, monthly_rate / WORKING_DAYS_PER_MONTH


def compute_monthly_billing(
    contract: Contract,
    period: BillingPeriod,
    actuals: MonthlyActuals,
    conversion_rate: float | None = None,
) -> BillingResult:
    """Leave-adjusted expected billing for one period.

    Only the first ``actual_resource_count`` leave entries are honoured;
    resources without an entry are billed with zero leave.
    """
    base_days = working_days(period.effective_start, period.effective_end)
    monthly_rate, daily_rate = daily_rate_for(contract, period.period_end.year)
    effective_days = max(0, base_days - actuals.regional_holidays)

    resources: list[ResourceBilling] = []
    for index in range(actuals.actual_resource_count):
        if index < len(actuals.resource_leaves):
            leave = actuals.resource_leaves[index]
            name, leave_days = leave.resource_name, leave.leave_days
        else:
            name, leave_days = f"Resource {index + 1}", 0.0
        billable = max(0.0, effective_days - leave_days)
        resources.append(
            ResourceBilling(
                resource_name=name,
                leave_days=leave_days,
                billable_days=billable,
                amount=billable * daily_rate,
            )
        )

    total_days = sum(resource.billable_days for resource in resources)
    amount = total_days * daily_rate
    return BillingResult(
        expected_amount_source=amount,
        expected_amount_usd=convert_to_usd(amount, conversion_rate),
        billable_days_per_resource=effective_days,
        daily_rate=daily_rate,
        monthly_rate=monthly_rate,
        working_days=base_days,
        total_billable_resource_days=total_days,
        resources=resources,
    )


def preview_billing(
    contract: Contract,
    period: BillingPeriod,
    *,
    holidays: int = 0,
    resource_count: int | None = None,
    conversion_rate: float | None = None,
) -> BillingPreview:
    count = contract.number_of_resources if resource_count is None else max(0, resource_count)
    base_days = working_days(period.effective_start, period.effective_end)
    monthly_rate, daily_rate = daily_rate_for(contract, period.period_end.year)
    effective_days = max(0, base_days - holidays)
    amount = effective_days * count * daily_rate
    return BillingPreview(
        amount_source=amount,
        amount_usd=convert_to_usd(amount, conversion_rate),
        billable_days_per_resource=effective_days,
        daily_rate=daily_rate,
        monthly_rate=monthly_rate,
        resource_count=count,
    )


def calendar_month_billing(contract: Contract, month: date) -> float:
    """Unadjusted billing for the calendar month containing ``month``.

    Zero when the contract is not active at any point in that month.
    """
    bounds = month_bounds(month)
    active = interval_overlap(bounds, contract_span(contract))
    if active is None:
        return 0.0
    _, daily_rate = daily_rate_for(contract, bounds.start.year)
    return working_days(active.start, active.end) * contract.number_of_resources * daily_rate


def estimate_current_month_billing(contract: Contract, as_of: date) -> float:
    return calendar_month_billing(contract, as_of)


__all__ = [
    "calendar_month_billing",
    "compute_monthly_billing",
    "convert_to_usd",
    "daily_rate_for",
    "estimate_current_month_billing",
    "is_usable_rate",
    "normalize_to_usd",
    "preview_billing",
]
