from datetime import date

import pytest

from sow_tracker.models.contract import BillingRate, Contract


def build_contract(**overrides) -> Contract:
    fields = {
        "id": "sow-test",
        "project_name": "Project Phoenix",
        "vendor_name": "Innovate Solutions",
        "vendor_manager": "John Smith",
        "client_manager": "Alice Johnson",
        "purchase_order_number": "PO-2024-001",
        "start_date": date(2024, 1, 1),
        "end_date": date(2024, 12, 31),
        "number_of_resources": 5,
        "billing_rates": [
            BillingRate(year=2023, rate_per_resource=110000),
            BillingRate(year=2024, rate_per_resource=120000),
        ],
    }
    fields.update(overrides)
    return Contract(**fields)


@pytest.fixture
def contract() -> Contract:
    return build_contract()


@pytest.fixture
def make_contract():
    return build_contract
