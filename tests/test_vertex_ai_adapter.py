from datetime import date

import pytest

from sow_tracker.exceptions import ExplanationError, ExtractionError
from sow_tracker.models.anomaly import ExplanationRequest
from sow_tracker.models.billing import ResourceLeave
from sow_tracker.models.contract import BillingRate
from sow_tracker.vertex_ai_adapter import VertexAIAdapter, build_explanation_prompt, parse_json_response


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeModel:
    def __init__(self, text):
        self.text = text
        self.calls = []

    def generate_content(self, contents, generation_config=None):
        self.calls.append(contents)
        return FakeResponse(self.text)


def make_adapter(text):
    adapter = VertexAIAdapter.__new__(VertexAIAdapter)
    adapter.project_id = "test-project"
    adapter.location = "us-central1"
    adapter.model_name = "gemini-2.5-flash"
    adapter.model = FakeModel(text)
    return adapter


def make_request(**overrides):
    fields = {
        "vendor_name": "Innovate Solutions",
        "sow_start_date": date(2024, 1, 1),
        "sow_end_date": date(2024, 12, 31),
        "billing_rates": [BillingRate(year=2024, rate_per_resource=120000)],
        "number_of_resources": 5,
        "actual_number_of_resources": 2,
        "billing_period_start_date": date(2024, 2, 26),
        "billing_period_end_date": date(2024, 3, 25),
        "regional_holidays": 1,
        "resource_leaves": [ResourceLeave(resource_name="Asha", leave_days=1.5)],
        "monthly_rate": 120000,
        "daily_rate": 120000 / 21,
        "expected_billing_amount": 2650.6,
        "actual_billing_amount": 2915.66,
        "usd_conversion_rate": 83,
        "system_flag": True,
    }
    fields.update(overrides)
    return ExplanationRequest(**fields)


def test_parse_json_strips_code_fences():
    assert parse_json_response('```json\n{"a": 1}\n```') == {"a": 1}
    assert parse_json_response('```\n[1, 2]\n```') == [1, 2]


def test_parse_json_rejects_prose():
    with pytest.raises(ValueError):
        parse_json_response("I could not read the document.")


def test_prompt_lists_billing_inputs():
    prompt = build_explanation_prompt(make_request())
    assert "- Vendor Name: Innovate Solutions" in prompt
    assert "- Billing Period: 2024-02-26 to 2024-03-25" in prompt
    assert "Resource 'Asha' Leave Days: 1.5 days" in prompt
    assert "USD Conversion Rate (source units per USD): 83.0000" in prompt
    assert "- Monthly Billing Rate per Resource (source currency): 120000.00" in prompt
    assert "- Expected Billing Amount (calculated, USD): 2650.60" in prompt
    assert "- Actual Billing Amount (USD): 2915.66" in prompt
    assert "indicates an anomaly: true" in prompt
    assert '{"isAnomaly": <true|false>' in prompt


def test_prompt_without_conversion_or_leave():
    prompt = build_explanation_prompt(
        make_request(usd_conversion_rate=None, resource_leaves=[], amount_currency="source currency")
    )
    assert "Actual Billing Amount (source currency): 2915.66" in prompt
    assert "(source units per USD): N/A" in prompt
    assert "No resource leave recorded" in prompt


def test_explain_parses_verdict():
    adapter = make_adapter('```json\n{"isAnomaly": true, "explanation": "Billed 10% over"}\n```')
    verdict = adapter.explain(make_request())
    assert verdict.is_anomaly
    assert verdict.explanation == "Billed 10% over"


def test_explain_rejects_unusable_output():
    with pytest.raises(ExplanationError):
        make_adapter('{"verdict": "maybe"}').explain(make_request())
    with pytest.raises(ExplanationError):
        make_adapter("not json").explain(make_request())


def test_extract_requires_json_object():
    with pytest.raises(ExtractionError):
        make_adapter("[]").extract_contract_fields(document=b"%PDF", mime_type="application/pdf")


def test_extract_sends_document_before_prompt():
    adapter = make_adapter('{"vendorName": "Innovate Solutions"}')
    fields = adapter.extract_contract_fields(document=b"%PDF", mime_type="application/pdf")
    assert fields == {"vendorName": "Innovate Solutions"}
    contents = adapter.model.calls[0]
    assert len(contents) == 2
    assert isinstance(contents[1], str)
