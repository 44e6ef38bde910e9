from __future__ import annotations

from datetime import date
from typing import Mapping, Sequence

from .dictionaries import BILLING_CYCLE_END_DAY, BILLING_CYCLE_START_DAY
from .models.billing import BillingPeriod, MonthlyActuals, PeriodOverride, ResourceLeave
from .models.contract import Contract
from .working_days import DateRange, add_months, clip, interval_overlap, iter_months


def billing_window(month: date) -> DateRange:
    """Return the raw billing window closing in ``month``'s calendar month."""
    first = month.replace(day=1)
    previous = add_months(first, -1)
    return DateRange(
        start=previous.replace(day=BILLING_CYCLE_START_DAY),
        end=first.replace(day=BILLING_CYCLE_END_DAY),
    )


def contract_span(contract: Contract) -> DateRange:
    return DateRange(start=contract.start_date, end=contract.end_date)


def generate_billing_periods(contract: Contract) -> list[BillingPeriod]:
    """Enumerate the contract's billing periods, most recent first.

    Each period keeps its raw 26th-25th window and the effective range
    clipped to the contract span. Windows outside the span are dropped.
    """
    span = contract_span(contract)
    last_month = contract.end_date
    if contract.end_date.day >= BILLING_CYCLE_START_DAY:
        # The tail after the 25th belongs to the next month's window.
        last_month = add_months(contract.end_date.replace(day=1), 1)

    periods: list[BillingPeriod] = []
    for month in iter_months(contract.start_date, last_month):
        window = billing_window(month)
        effective = interval_overlap(window, span)
        if effective is None:
            continue
        periods.append(
            BillingPeriod(
                period_id=month.strftime("%Y-%m"),
                period_start=window.start,
                period_end=window.end,
                effective_start=effective.start,
                effective_end=effective.end,
            )
        )
    periods.reverse()
    return periods


def find_current_period(periods: Sequence[BillingPeriod], as_of: date) -> BillingPeriod | None:
    for period in periods:
        if period.period_start <= as_of <= period.period_end:
            return period
    return periods[0] if periods else None


def default_actuals(contract: Contract) -> MonthlyActuals:
    return MonthlyActuals(
        regional_holidays=0,
        actual_resource_count=contract.number_of_resources,
        resource_leaves=_resize_leaves([], contract.number_of_resources),
    )


def apply_override(
    contract: Contract,
    period: BillingPeriod,
    skeleton: MonthlyActuals,
    override: PeriodOverride | None,
) -> tuple[BillingPeriod, MonthlyActuals]:
    """Merge a user override over a generated period and its default actuals.

    Neither input is modified; the same skeleton and override always produce
    the same result.
    """
    if override is None:
        return period, skeleton

    count = (
        override.actual_resource_count
        if override.actual_resource_count is not None
        else skeleton.actual_resource_count
    )
    leaves = _resize_leaves(skeleton.resource_leaves, count)
    leaves = [
        ResourceLeave(
            resource_name=leave.resource_name,
            leave_days=override.leave_days.get(index, leave.leave_days),
        )
        for index, leave in enumerate(leaves)
    ]
    actuals = MonthlyActuals(
        regional_holidays=(
            override.regional_holidays
            if override.regional_holidays is not None
            else skeleton.regional_holidays
        ),
        actual_resource_count=count,
        resource_leaves=leaves,
    )

    if override.period_start is None and override.period_end is None:
        return period, actuals

    window = DateRange(
        start=override.period_start or period.period_start,
        end=override.period_end or period.period_end,
    )
    effective = clip(window, contract_span(contract))
    adjusted = period.model_copy(
        update={
            "period_start": window.start,
            "period_end": window.end,
            "effective_start": effective.start,
            "effective_end": effective.end,
        }
    )
    return adjusted, actuals


def billing_schedule(
    contract: Contract,
    overrides: Mapping[str, PeriodOverride] | None = None,
) -> list[tuple[BillingPeriod, MonthlyActuals]]:
    overrides = overrides or {}
    skeleton = default_actuals(contract)
    return [
        apply_override(contract, period, skeleton, overrides.get(period.period_id))
        for period in generate_billing_periods(contract)
    ]


def _resize_leaves(leaves: Sequence[ResourceLeave], size: int) -> list[ResourceLeave]:
    resized: list[ResourceLeave] = []
    for index in range(size):
        if index < len(leaves):
            resized.append(leaves[index])
        else:
            resized.append(ResourceLeave(resource_name=f"Resource {index + 1}", leave_days=0))
    return resized


__all__ = [
    "apply_override",
    "billing_schedule",
    "billing_window",
    "contract_span",
    "default_actuals",
    "find_current_period",
    "generate_billing_periods",
]
