import json
import logging
from datetime import date

from sow_tracker.config import load_settings
from sow_tracker.dictionaries import sample_contracts
from sow_tracker.logging_config import (
    BillingContextFilter,
    StructuredFormatter,
    bind_log_labels,
    clear_log_context,
    get_trace_id,
    set_trace_id,
)


def test_settings_defaults():
    settings = load_settings({})
    assert settings.is_dev
    assert settings.project_id is None
    assert settings.contracts_collection == "sows"
    assert settings.default_usd_conversion_rate == 83.0
    assert settings.seed_sample_contracts


def test_settings_from_environment():
    settings = load_settings(
        {
            "ENVIRONMENT": "prod",
            "PROJECT_ID": "sow-prod",
            "CONTRACTS_COLLECTION": "sows-prod",
            "DEFAULT_USD_CONVERSION_RATE": "84.5",
            "SEED_SAMPLE_CONTRACTS": "false",
        }
    )
    assert not settings.is_dev
    assert settings.project_id == "sow-prod"
    assert settings.contracts_collection == "sows-prod"
    assert settings.default_usd_conversion_rate == 84.5
    assert not settings.seed_sample_contracts


def test_structured_formatter_includes_extra_fields():
    record = logging.LogRecord("sow_tracker.billing", logging.INFO, __file__, 10, "Saved contract", None, None)
    record.contract_id = "sow-1"

    set_trace_id("trace-123")
    try:
        payload = json.loads(StructuredFormatter().format(record))
    finally:
        set_trace_id(None)

    assert payload["message"] == "Saved contract"
    assert payload["severity"] == "INFO"
    assert payload["service"] == "sow-tracker"
    assert payload["contract_id"] == "sow-1"
    assert payload["logging.googleapis.com/trace"] == "trace-123"
    assert get_trace_id() is None


def test_sample_contracts_are_relative_to_as_of():
    contracts = sample_contracts(date(2024, 6, 15))
    assert [c.id for c in contracts] == ["sow-1", "sow-2", "sow-3"]
    phoenix = contracts[0]
    assert phoenix.start_date == date(2024, 1, 1)
    assert phoenix.end_date == date(2024, 8, 15)
    assert [rate.year for rate in phoenix.billing_rates] == [2022, 2023, 2024]


def test_bound_labels_reach_structured_output():
    record = logging.LogRecord("sow_tracker.anomaly", logging.INFO, __file__, 20, "Explained", None, None)

    bind_log_labels(contract_id="sow-1")
    bind_log_labels(period_id="2024-03")
    set_trace_id("abc123")
    try:
        assert BillingContextFilter().filter(record)
        payload = json.loads(StructuredFormatter(project_id="sow-prod").format(record))
    finally:
        clear_log_context()

    assert payload["logging.googleapis.com/labels"] == {"contract_id": "sow-1", "period_id": "2024-03"}
    assert payload["logging.googleapis.com/trace"] == "projects/sow-prod/traces/abc123"
    assert "labels" not in payload
    assert get_trace_id() is None


def test_filter_leaves_unbound_records_alone():
    record = logging.LogRecord("sow_tracker.billing", logging.INFO, __file__, 30, "Computed", None, None)
    assert BillingContextFilter().filter(record)
    assert not hasattr(record, "labels")
