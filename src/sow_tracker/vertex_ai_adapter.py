from __future__ import annotations

import json
import logging
from typing import Any, Sequence

import vertexai
from pydantic import ValidationError
from vertexai.generative_models import GenerationConfig, GenerativeModel, Part

from .billing import is_usable_rate
from .exceptions import ExplanationError, ExtractionError
from .models.anomaly import ExplanationRequest, ExplanationVerdict

logger = logging.getLogger(__name__)


EXTRACTION_PROMPT = """You are an expert at parsing Statement of Work (SOW) documents and extracting key details.
Analyze the attached SOW document and extract the following information:
1. projectName: the name of the project. Infer it from context or leave it blank.
2. vendorName: the official name of the vendor.
3. clientManagerName: the primary contact or manager for the client (may be called an engineering or business leader). Leave blank if absent.
4. vendorManagerName: the primary contact or manager for the vendor. Leave blank if absent.
5. purchaseOrderNumber: the PO number, if present.
6. sowStartDate: the SOW start date as YYYY-MM-DD.
7. sowEndDate: the SOW end date as YYYY-MM-DD.
8. billingRates: the monthly billing rate per resource for the current year and, when stated or clearly derivable, the two preceding years, as a list of {"year": <int>, "ratePerResource": <number>}.
9. numberOfResources: the total number of resources allocated in the SOW.

Return a single JSON object with exactly these keys. Omit or leave blank anything you cannot find."""


EXPLANATION_PROMPT = """You are an expert financial analyst specializing in SOW billing.
Analyze the SOW details, the expected billing and the actual billing below, decide whether there is a significant anomaly (a deviation of roughly 5-10% or more), and explain your finding clearly and concisely.

- Vendor Name: {vendor_name}
- SOW Start Date: {sow_start_date}
- SOW End Date: {sow_end_date}
- SOW Number of Resources: {number_of_resources}
- Actual Number of Resources for Billing: {actual_number_of_resources}
- Billing Period: {period_start} to {period_end}
- Regional Holidays: {regional_holidays} days
{leave_lines}
- Monthly Billing Rate per Resource (source currency): {monthly_rate}
- Daily Billing Rate per Resource (source currency): {daily_rate}
- Expected Billing Amount (calculated, {amount_currency}): {expected_billing_amount}
- Actual Billing Amount ({amount_currency}): {actual_billing_amount}
- USD Conversion Rate (source units per USD): {usd_conversion_rate}

The system's internal calculation indicates an anomaly: {system_flag}.

Respond with a JSON object: {{"isAnomaly": <true|false>, "explanation": "<text>"}}"""


class VertexAIAdapter:
    """Adapter for Vertex AI Gemini models."""

    def __init__(
        self,
        *,
        project_id: str,
        location: str = "us-central1",
        model_name: str = "gemini-2.5-flash",
    ) -> None:
        """Initialize Vertex AI adapter.

        Args:
            project_id: GCP project ID
            location: Vertex AI location
            model_name: Model name (e.g., "gemini-2.5-flash")
        """
        self.project_id = project_id
        self.location = location
        self.model_name = model_name

        vertexai.init(project=project_id, location=location)
        self.model = GenerativeModel(model_name)

    def generate_content(
        self,
        prompt: str,
        *,
        attachments: Sequence[Part] = (),
        temperature: float = 0.2,
        max_output_tokens: int = 8192,
        response_format: str | None = None,
    ) -> str:
        """Generate content using Vertex AI.

        Args:
            prompt: Input prompt
            attachments: Optional media parts sent ahead of the prompt
            temperature: Sampling temperature (0.0 - 1.0)
            max_output_tokens: Maximum output tokens
            response_format: Optional response format ("json" for JSON mode)

        Returns:
            Generated text
        """
        generation_config = GenerationConfig(
            temperature=temperature,
            max_output_tokens=max_output_tokens,
        )

        if response_format == "json":
            prompt = f"{prompt}\n\nPlease respond with valid JSON only."

        response = self.model.generate_content(
            [*attachments, prompt],
            generation_config=generation_config,
        )

        generated_text = response.text

        logger.info(
            "Generated content with Vertex AI",
            extra={
                "model": self.model_name,
                "temperature": temperature,
                "attachments": len(attachments),
                "input_length": len(prompt),
                "output_length": len(generated_text),
            },
        )

        return generated_text

    def generate_json(
        self,
        prompt: str,
        *,
        attachments: Sequence[Part] = (),
        temperature: float = 0.2,
        max_output_tokens: int = 8192,
    ) -> Any:
        """Generate a structured JSON response.

        Raises:
            ValueError: The model did not return parseable JSON
        """
        response = self.generate_content(
            prompt,
            attachments=attachments,
            temperature=temperature,
            max_output_tokens=max_output_tokens,
            response_format="json",
        )
        return parse_json_response(response)

    def extract_contract_fields(self, *, document: bytes, mime_type: str) -> dict[str, Any]:
        """Extract SOW fields from a document.

        Args:
            document: Raw document bytes
            mime_type: Document MIME type (e.g., "application/pdf")

        Returns:
            Raw field mapping as returned by the model

        Raises:
            ExtractionError: The call failed or the payload was not a JSON object
        """
        try:
            result = self.generate_json(
                EXTRACTION_PROMPT,
                attachments=[Part.from_data(data=document, mime_type=mime_type)],
                temperature=0.0,
            )
        except Exception as exc:
            logger.error(
                "Failed to extract SOW details with Vertex AI",
                exc_info=True,
                extra={"mime_type": mime_type, "document_size": len(document)},
            )
            raise ExtractionError(f"Failed to extract details from SOW document: {exc}") from exc

        if not isinstance(result, dict):
            logger.warning("Unexpected JSON structure from Vertex AI", extra={"result": result})
            raise ExtractionError("Failed to extract details from SOW document: expected a JSON object")
        return result

    def explain(self, request: ExplanationRequest) -> ExplanationVerdict:
        """Ask the model whether a billing is anomalous and why.

        The request carries the deterministic classification as a hint; the
        model may disagree with it.

        Raises:
            ExplanationError: The call failed or the payload was malformed
        """
        prompt = build_explanation_prompt(request)
        try:
            result = self.generate_json(prompt, temperature=0.2)
        except Exception as exc:
            logger.error(
                "Failed to explain billing with Vertex AI",
                exc_info=True,
                extra={"vendor_name": request.vendor_name},
            )
            raise ExplanationError(f"Failed to analyze billing for anomalies: {exc}") from exc

        try:
            return ExplanationVerdict.model_validate(result)
        except ValidationError as exc:
            logger.warning("Unexpected JSON structure from Vertex AI", extra={"result": result})
            raise ExplanationError("No usable output from AI model") from exc


def parse_json_response(response: str) -> Any:
    text = response.strip()
    if text.startswith("```json"):
        text = text[7:]
    if text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    try:
        return json.loads(text.strip())
    except json.JSONDecodeError as exc:
        logger.error("Failed to parse JSON response", exc_info=True, extra={"response": response})
        raise ValueError(f"Invalid JSON response: {exc}") from exc


def build_explanation_prompt(request: ExplanationRequest) -> str:
    leave_lines = "\n".join(
        f"- Resource '{leave.resource_name}' Leave Days: {leave.leave_days:g} days"
        for leave in request.resource_leaves
    )
    conversion = (
        f"{request.usd_conversion_rate:.4f}"
        if is_usable_rate(request.usd_conversion_rate)
        else "N/A"
    )
    return EXPLANATION_PROMPT.format(
        vendor_name=request.vendor_name,
        sow_start_date=request.sow_start_date.isoformat(),
        sow_end_date=request.sow_end_date.isoformat(),
        number_of_resources=request.number_of_resources,
        actual_number_of_resources=request.actual_number_of_resources,
        period_start=request.billing_period_start_date.isoformat(),
        period_end=request.billing_period_end_date.isoformat(),
        regional_holidays=request.regional_holidays,
        leave_lines=leave_lines or "- No resource leave recorded",
        monthly_rate=f"{request.monthly_rate:.2f}",
        daily_rate=f"{request.daily_rate:.2f}",
        expected_billing_amount=f"{request.expected_billing_amount:.2f}",
        actual_billing_amount=f"{request.actual_billing_amount:.2f}",
        usd_conversion_rate=conversion,
        amount_currency=request.amount_currency,
        system_flag=str(request.system_flag).lower(),
    )


__all__ = ["VertexAIAdapter", "build_explanation_prompt", "parse_json_response"]
