from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Sequence

from .models.contract import BillingRate, Contract
from .working_days import add_months

# A monthly rate per resource covers exactly this many working days.
WORKING_DAYS_PER_MONTH = 21

# Billing windows run from the 26th of the prior month to the 25th.
BILLING_CYCLE_START_DAY = 26
BILLING_CYCLE_END_DAY = 25

ANOMALY_THRESHOLD = 0.05

RENEWAL_LOOKAHEAD_MONTHS = 3

# Source-currency units per 1 USD.
DEFAULT_USD_CONVERSION_RATE = 83.0

QUARTER_END_MONTHS = (3, 6, 9, 12)

MAX_DOCUMENT_SIZE_MB = 10


@dataclass
class EvaluationContext:
    as_of: date
    usd_conversion_rate: float | None = DEFAULT_USD_CONVERSION_RATE
    anomaly_threshold: float = ANOMALY_THRESHOLD


def default_evaluation_context() -> EvaluationContext:
    return EvaluationContext(as_of=date.today())


@dataclass(frozen=True)
class SampleContract:
    id: str
    project_name: str
    vendor_name: str
    vendor_manager: str
    client_manager: str
    purchase_order_number: str
    start_offset_years: int
    start_month_day: tuple[int, int]
    end_offset_months: int
    number_of_resources: int
    rates_by_year_offset: Sequence[tuple[int, float]] = field(default_factory=tuple)

    def build(self, as_of: date) -> Contract:
        month, day = self.start_month_day
        return Contract(
            id=self.id,
            project_name=self.project_name,
            vendor_name=self.vendor_name,
            vendor_manager=self.vendor_manager,
            client_manager=self.client_manager,
            purchase_order_number=self.purchase_order_number,
            start_date=date(as_of.year + self.start_offset_years, month, day),
            end_date=add_months(as_of, self.end_offset_months),
            number_of_resources=self.number_of_resources,
            billing_rates=[
                BillingRate(year=as_of.year + offset, rate_per_resource=rate)
                for offset, rate in self.rates_by_year_offset
            ],
        )


SAMPLE_CONTRACTS: Sequence[SampleContract] = (
    SampleContract(
        id="sow-1",
        project_name="Project Phoenix",
        vendor_name="Innovate Solutions",
        vendor_manager="John Smith",
        client_manager="Alice Johnson",
        purchase_order_number="PO-2024-001",
        start_offset_years=0,
        start_month_day=(1, 1),
        end_offset_months=2,
        number_of_resources=5,
        rates_by_year_offset=((-2, 100000.0), (-1, 110000.0), (0, 120000.0)),
    ),
    SampleContract(
        id="sow-2",
        project_name="Quantum Leap",
        vendor_name="TechGenix Inc.",
        vendor_manager="David Chen",
        client_manager="Bob Williams",
        purchase_order_number="PO-2024-002",
        start_offset_years=-1,
        start_month_day=(11, 15),
        end_offset_months=8,
        number_of_resources=3,
        rates_by_year_offset=((-1, 250000.0), (0, 275000.0)),
    ),
    SampleContract(
        id="sow-3",
        project_name="Odyssey Initiative",
        vendor_name="Creative Minds LLC",
        vendor_manager="Maria Garcia",
        client_manager="Alice Johnson",
        purchase_order_number="PO-2024-003",
        start_offset_years=-2,
        start_month_day=(7, 1),
        end_offset_months=11,
        number_of_resources=10,
        rates_by_year_offset=((-2, 85000.0), (-1, 90000.0), (0, 95000.0)),
    ),
)


def sample_contracts(as_of: date) -> list[Contract]:
    return [sample.build(as_of) for sample in SAMPLE_CONTRACTS]


__all__ = [
    "ANOMALY_THRESHOLD",
    "BILLING_CYCLE_END_DAY",
    "BILLING_CYCLE_START_DAY",
    "DEFAULT_USD_CONVERSION_RATE",
    "MAX_DOCUMENT_SIZE_MB",
    "QUARTER_END_MONTHS",
    "RENEWAL_LOOKAHEAD_MONTHS",
    "SAMPLE_CONTRACTS",
    "WORKING_DAYS_PER_MONTH",
    "EvaluationContext",
    "SampleContract",
    "default_evaluation_context",
    "sample_contracts",
]
