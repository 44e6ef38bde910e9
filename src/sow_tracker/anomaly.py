from __future__ import annotations

import logging
from typing import Protocol

from .billing import compute_monthly_billing, is_usable_rate, normalize_to_usd
from .dictionaries import ANOMALY_THRESHOLD
from .exceptions import CollaboratorError, ExplanationError
from .models.anomaly import (
    AnomalyClassification,
    AnomalyReport,
    ExplanationRequest,
    ExplanationVerdict,
)
from .models.billing import BillingPeriod, MonthlyActuals
from .models.contract import Contract

logger = logging.getLogger(__name__)


def deviation_ratio(expected: float, actual: float) -> float:
    deviation = abs(actual - expected)
    if expected > 0:
        return deviation / expected
    return 1.0 if deviation > 0 else 0.0


def classify_anomaly(
    expected: float,
    actual: float,
    conversion_rate: float | None = None,
    *,
    threshold: float = ANOMALY_THRESHOLD,
) -> AnomalyClassification:
    """Deterministic anomaly rule: relative deviation above ``threshold``.

    Both amounts are in source currency and normalised to USD with the same
    convention as the billing calculator before comparison.
    """
    expected_usd = normalize_to_usd(expected, conversion_rate)
    actual_usd = normalize_to_usd(actual, conversion_rate)
    ratio = deviation_ratio(expected_usd, actual_usd)
    return AnomalyClassification(
        is_anomalous=ratio > threshold,
        deviation_ratio=ratio,
        expected_usd=expected_usd,
        actual_usd=actual_usd,
    )


class AnomalyExplainer(Protocol):
    def explain(self, request: ExplanationRequest) -> ExplanationVerdict:
        ...


class BillingAnomalyDetector:
    def __init__(self, *, explainer: AnomalyExplainer, threshold: float = ANOMALY_THRESHOLD) -> None:
        self._explainer = explainer
        self._threshold = threshold

    def detect(
        self,
        contract: Contract,
        period: BillingPeriod,
        actuals: MonthlyActuals,
        actual_amount: float,
        conversion_rate: float | None = None,
    ) -> AnomalyReport:
        """Classify a reported amount and ask the explainer for a rationale.

        The reported ``is_anomaly`` is the explainer's verdict; the threshold
        result stays available as ``system_flag``.
        """
        billing = compute_monthly_billing(contract, period, actuals, conversion_rate)
        classification = classify_anomaly(
            billing.expected_amount_source,
            actual_amount,
            conversion_rate,
            threshold=self._threshold,
        )
        request = ExplanationRequest(
            vendor_name=contract.vendor_name,
            sow_start_date=contract.start_date,
            sow_end_date=contract.end_date,
            billing_rates=contract.billing_rates,
            number_of_resources=contract.number_of_resources,
            actual_number_of_resources=actuals.actual_resource_count,
            billing_period_start_date=period.effective_start,
            billing_period_end_date=period.effective_end,
            regional_holidays=actuals.regional_holidays,
            resource_leaves=list(actuals.resource_leaves)[: actuals.actual_resource_count],
            monthly_rate=billing.monthly_rate,
            daily_rate=billing.daily_rate,
            expected_billing_amount=classification.expected_usd,
            actual_billing_amount=classification.actual_usd,
            usd_conversion_rate=conversion_rate,
            amount_currency="USD" if is_usable_rate(conversion_rate) else "source currency",
            system_flag=classification.is_anomalous,
        )

        try:
            verdict = self._explainer.explain(request)
        except CollaboratorError:
            raise
        except Exception as exc:
            logger.error(
                "Billing anomaly explanation failed",
                exc_info=True,
                extra={"contract_id": contract.id, "period_id": period.period_id},
            )
            raise ExplanationError(f"Failed to analyze billing for anomalies: {exc}") from exc

        if verdict.is_anomaly != classification.is_anomalous:
            logger.info(
                "Explainer verdict differs from threshold classification",
                extra={
                    "contract_id": contract.id,
                    "period_id": period.period_id,
                    "system_flag": classification.is_anomalous,
                    "explainer_verdict": verdict.is_anomaly,
                    "deviation_ratio": classification.deviation_ratio,
                },
            )

        return AnomalyReport(
            is_anomaly=verdict.is_anomaly,
            system_flag=classification.is_anomalous,
            explainer_verdict=verdict.is_anomaly,
            deviation_ratio=classification.deviation_ratio,
            expected_amount=classification.expected_usd,
            actual_amount=classification.actual_usd,
            explanation=verdict.explanation,
            billing=billing,
        )


__all__ = ["AnomalyExplainer", "BillingAnomalyDetector", "classify_anomaly", "deviation_ratio"]
