from datetime import date

import pytest

from sow_tracker.billing import (
    calendar_month_billing,
    compute_monthly_billing,
    convert_to_usd,
    normalize_to_usd,
    preview_billing,
)
from sow_tracker.models.billing import MonthlyActuals, ResourceLeave
from sow_tracker.models.contract import BillingRate
from sow_tracker.periods import generate_billing_periods

DAILY_RATE = 120000 / 21


@pytest.fixture
def march_period(contract):
    return next(p for p in generate_billing_periods(contract) if p.period_id == "2024-03")


def single_resource(**overrides) -> MonthlyActuals:
    fields = {
        "regional_holidays": 0,
        "actual_resource_count": 1,
        "resource_leaves": [ResourceLeave(resource_name="Resource 1", leave_days=0)],
    }
    fields.update(overrides)
    return MonthlyActuals(**fields)


def test_full_window_bills_one_monthly_rate(contract, march_period):
    result = compute_monthly_billing(contract, march_period, single_resource())
    assert result.working_days == 21
    assert result.billable_days_per_resource == 21
    assert result.monthly_rate == 120000
    assert result.daily_rate == pytest.approx(DAILY_RATE)
    assert result.expected_amount_source == pytest.approx(120000)
    assert result.expected_amount_usd is None


def test_holidays_reduce_every_resource(contract, march_period):
    result = compute_monthly_billing(contract, march_period, single_resource(regional_holidays=2))
    assert result.billable_days_per_resource == 19
    assert result.expected_amount_source == pytest.approx(108571.43, abs=0.01)


def test_leave_is_per_resource(contract, march_period):
    actuals = MonthlyActuals(
        regional_holidays=0,
        actual_resource_count=2,
        resource_leaves=[
            ResourceLeave(resource_name="Asha", leave_days=2.5),
            ResourceLeave(resource_name="Ben", leave_days=0),
        ],
    )
    result = compute_monthly_billing(contract, march_period, actuals)
    assert [r.billable_days for r in result.resources] == [18.5, 21]
    assert result.total_billable_resource_days == 39.5
    assert result.expected_amount_source == pytest.approx(39.5 * DAILY_RATE)


def test_only_counted_resources_are_billed(contract, march_period):
    actuals = MonthlyActuals(
        regional_holidays=0,
        actual_resource_count=1,
        resource_leaves=[
            ResourceLeave(resource_name="Asha", leave_days=0),
            ResourceLeave(resource_name="Ben", leave_days=5),
        ],
    )
    result = compute_monthly_billing(contract, march_period, actuals)
    assert len(result.resources) == 1
    assert result.expected_amount_source == pytest.approx(120000)


def test_missing_leave_entries_mean_no_leave(contract, march_period):
    actuals = MonthlyActuals(
        regional_holidays=0,
        actual_resource_count=3,
        resource_leaves=[ResourceLeave(resource_name="Asha", leave_days=1)],
    )
    result = compute_monthly_billing(contract, march_period, actuals)
    assert [r.billable_days for r in result.resources] == [20, 21, 21]
    assert result.resources[2].resource_name == "Resource 3"


def test_days_never_go_negative(contract, march_period):
    actuals = single_resource(
        regional_holidays=30,
        resource_leaves=[ResourceLeave(resource_name="Asha", leave_days=40)],
    )
    result = compute_monthly_billing(contract, march_period, actuals)
    assert result.billable_days_per_resource == 0
    assert result.expected_amount_source == 0

    heavy_leave = single_resource(resource_leaves=[ResourceLeave(resource_name="Asha", leave_days=40)])
    assert compute_monthly_billing(contract, march_period, heavy_leave).expected_amount_source == 0


def test_zero_resources_bill_nothing(contract, march_period):
    result = compute_monthly_billing(
        contract, march_period, MonthlyActuals(actual_resource_count=0, resource_leaves=[])
    )
    assert result.expected_amount_source == 0
    assert result.resources == []


def test_usd_conversion_divides_by_rate(contract, march_period):
    result = compute_monthly_billing(contract, march_period, single_resource(), conversion_rate=83.0)
    assert result.expected_amount_usd == pytest.approx(120000 / 83.0)


def test_rate_uses_year_of_period_end(make_contract):
    contract = make_contract(
        start_date=date(2023, 12, 1),
        billing_rates=[
            BillingRate(year=2023, rate_per_resource=21000),
            BillingRate(year=2024, rate_per_resource=42000),
        ],
    )
    period = next(p for p in generate_billing_periods(contract) if p.period_id == "2024-01")
    assert period.period_start.year == 2023
    result = compute_monthly_billing(contract, period, single_resource())
    assert result.monthly_rate == 42000


def test_no_applicable_rate_bills_zero(make_contract, march_period):
    contract = make_contract(billing_rates=[BillingRate(year=2030, rate_per_resource=1)])
    assert compute_monthly_billing(contract, march_period, single_resource()).expected_amount_source == 0


def test_convert_to_usd_skips_unusable_rates():
    assert convert_to_usd(830, 83) == pytest.approx(10)
    assert convert_to_usd(830, 0) is None
    assert convert_to_usd(830, -1) is None
    assert convert_to_usd(830, None) is None
    assert normalize_to_usd(830, None) == 830


def test_preview_ignores_leave(contract, march_period):
    preview = preview_billing(contract, march_period, holidays=1, conversion_rate=83)
    assert preview.resource_count == 5
    assert preview.billable_days_per_resource == 20
    assert preview.amount_source == pytest.approx(20 * 5 * DAILY_RATE)
    assert preview.amount_usd == pytest.approx(20 * 5 * DAILY_RATE / 83)


def test_preview_resource_count_override(contract, march_period):
    assert preview_billing(contract, march_period, resource_count=1).amount_source == pytest.approx(120000)


def test_calendar_month_billing(contract):
    assert calendar_month_billing(contract, date(2024, 3, 15)) == pytest.approx(21 * 5 * DAILY_RATE)
    assert calendar_month_billing(contract, date(2025, 3, 1)) == 0
