from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import date

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from sow_tracker.anomaly import BillingAnomalyDetector
from sow_tracker.billing import compute_monthly_billing, estimate_current_month_billing, preview_billing
from sow_tracker.config import load_settings
from sow_tracker.contract_store import InMemoryContractStore
from sow_tracker.dictionaries import default_evaluation_context, sample_contracts
from sow_tracker.exceptions import CollaboratorError, InvalidDocumentError
from sow_tracker.extraction import ContractExtractor
from sow_tracker.firestore_contract_store import FirestoreContractStore
from sow_tracker.logging_config import bind_log_labels, clear_log_context, set_trace_id, setup_logging
from sow_tracker.models.anomaly import AnomalyReport
from sow_tracker.models.billing import (
    BillingPeriod,
    BillingPreview,
    BillingResult,
    MonthlyActuals,
    PeriodOverride,
)
from sow_tracker.models.contract import Contract
from sow_tracker.models.extraction import ContractDraft
from sow_tracker.models.forecast import ForecastTable
from sow_tracker.periods import apply_override, default_actuals, find_current_period, generate_billing_periods
from sow_tracker.renewal import ContractStatus, contract_status
from sow_tracker.rollup import aggregate_by_manager_and_period, contracts_for_manager, rate_history_by_year
from sow_tracker.sheets_exporter import ForecastSheetExporter
from sow_tracker.vertex_ai_adapter import VertexAIAdapter


class ContractPayload(Contract):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))


class BillingRequest(BaseModel):
    period_id: str | None = Field(default=None, description="YYYY-MM; defaults to the period containing as_of")
    as_of: date | None = None
    override: PeriodOverride | None = None
    usd_conversion_rate: float | None = Field(
        default=None, description="Source units per USD; 0 disables conversion"
    )


class AnomalyRequest(BillingRequest):
    actual_billing_amount: float = Field(ge=0)


class BillingResponse(BaseModel):
    period: BillingPeriod
    actuals: MonthlyActuals
    billing: BillingResult
    preview: BillingPreview


class StatusResponse(BaseModel):
    contract_id: str
    as_of: date
    status: ContractStatus
    is_expired: bool
    is_renewal_due: bool
    current_month_billing: float


class ExtractRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    document_data_uri: str = Field(alias="documentDataUri")


class ExportRequest(BaseModel):
    title: str | None = None
    template_id: str | None = None


class ExportResponse(BaseModel):
    url: str


settings = load_settings()

setup_logging(environment=settings.environment, project_id=settings.project_id)
logger = logging.getLogger(__name__)

app = FastAPI(title="SOW Tracker API", version="0.1.0")

# Firestore in production, in-memory for dev
if settings.is_dev:
    seed = sample_contracts(date.today()) if settings.seed_sample_contracts else ()
    contract_store = InMemoryContractStore(seed)
else:
    contract_store = FirestoreContractStore(
        project_id=settings.project_id, collection_name=settings.contracts_collection
    )

vertex_adapter = (
    VertexAIAdapter(
        project_id=settings.project_id,
        location=settings.vertex_location,
        model_name=settings.vertex_model,
    )
    if settings.project_id
    else None
)
contract_extractor = ContractExtractor(extractor=vertex_adapter) if vertex_adapter else None
anomaly_detector = BillingAnomalyDetector(explainer=vertex_adapter) if vertex_adapter else None
sheet_exporter = ForecastSheetExporter() if settings.project_id and not settings.is_dev else None


@app.middleware("http")
async def assign_trace_id(request: Request, call_next):
    header = request.headers.get("X-Cloud-Trace-Context", "")
    set_trace_id(header.split("/")[0] or str(uuid.uuid4()))
    try:
        return await call_next(request)
    finally:
        clear_log_context()


@app.get("/v1/contracts", response_model=list[Contract])
async def list_contracts(manager: str | None = None) -> list[Contract]:
    return contracts_for_manager(contract_store.list_all(), manager)


@app.post("/v1/contracts", response_model=Contract, status_code=201)
async def create_contract(payload: ContractPayload) -> Contract:
    contract = Contract.model_validate(payload.model_dump())
    return contract_store.save(contract)


@app.get("/v1/contracts/{contract_id}", response_model=Contract)
async def get_contract(contract_id: str) -> Contract:
    return _get_contract_or_404(contract_id)


@app.put("/v1/contracts/{contract_id}", response_model=Contract)
async def update_contract(contract_id: str, payload: ContractPayload) -> Contract:
    _get_contract_or_404(contract_id)
    contract = Contract.model_validate({**payload.model_dump(), "id": contract_id})
    return contract_store.save(contract)


@app.delete("/v1/contracts/{contract_id}", status_code=204)
async def delete_contract(contract_id: str) -> Response:
    _get_contract_or_404(contract_id)
    contract_store.delete(contract_id)
    return Response(status_code=204)


@app.get("/v1/contracts/{contract_id}/periods", response_model=list[BillingPeriod])
async def list_periods(contract_id: str) -> list[BillingPeriod]:
    return generate_billing_periods(_get_contract_or_404(contract_id))


@app.get("/v1/contracts/{contract_id}/status", response_model=StatusResponse)
async def get_status(contract_id: str, as_of: date | None = None) -> StatusResponse:
    contract = _get_contract_or_404(contract_id)
    as_of = as_of or default_evaluation_context().as_of
    status = contract_status(contract, as_of)
    return StatusResponse(
        contract_id=contract.id,
        as_of=as_of,
        status=status,
        is_expired=status is ContractStatus.expired,
        is_renewal_due=status is ContractStatus.renewal_due,
        current_month_billing=estimate_current_month_billing(contract, as_of),
    )


@app.post("/v1/contracts/{contract_id}/billing", response_model=BillingResponse)
async def compute_billing(contract_id: str, request: BillingRequest) -> BillingResponse:
    contract = _get_contract_or_404(contract_id)
    period, actuals = _resolve_period(contract, request)
    rate = _conversion_rate(request)
    return BillingResponse(
        period=period,
        actuals=actuals,
        billing=compute_monthly_billing(contract, period, actuals, rate),
        preview=preview_billing(
            contract,
            period,
            holidays=actuals.regional_holidays,
            resource_count=actuals.actual_resource_count,
            conversion_rate=rate,
        ),
    )


@app.post("/v1/contracts/{contract_id}/anomaly", response_model=AnomalyReport)
async def detect_anomaly(contract_id: str, request: AnomalyRequest) -> AnomalyReport:
    if anomaly_detector is None:
        raise HTTPException(status_code=503, detail="Anomaly explanation is not configured")
    contract = _get_contract_or_404(contract_id)
    period, actuals = _resolve_period(contract, request)
    try:
        return await asyncio.to_thread(
            anomaly_detector.detect,
            contract,
            period,
            actuals,
            request.actual_billing_amount,
            _conversion_rate(request),
        )
    except CollaboratorError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@app.post("/v1/contracts:extract", response_model=ContractDraft)
async def extract_contract(request: ExtractRequest) -> ContractDraft:
    if contract_extractor is None:
        raise HTTPException(status_code=503, detail="Document extraction is not configured")
    try:
        return await asyncio.to_thread(contract_extractor.extract, request.document_data_uri)
    except InvalidDocumentError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except CollaboratorError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@app.get("/v1/analytics/forecast", response_model=ForecastTable)
async def get_forecast() -> ForecastTable:
    return aggregate_by_manager_and_period(contract_store.list_all())


@app.get("/v1/analytics/rates")
async def get_rate_history(currency: str = "INR", conversion_rate: float | None = None) -> JSONResponse:
    if currency.upper() == "USD":
        rate = settings.default_usd_conversion_rate if conversion_rate is None else conversion_rate
    else:
        rate = None
    return JSONResponse(rate_history_by_year(contract_store.list_all(), rate))


@app.post("/v1/analytics/forecast:export", response_model=ExportResponse)
async def export_forecast(request: ExportRequest) -> ExportResponse:
    if sheet_exporter is None:
        raise HTTPException(status_code=503, detail="Sheets export is not configured")
    table = aggregate_by_manager_and_period(contract_store.list_all())
    title = request.title or f"SOW billing forecast {date.today().isoformat()}"
    url = await asyncio.to_thread(
        sheet_exporter.export, table, title=title, template_id=request.template_id
    )
    return ExportResponse(url=url)


@app.get("/health")
async def healthcheck() -> JSONResponse:
    return JSONResponse({"status": "ok"})


def _get_contract_or_404(contract_id: str) -> Contract:
    bind_log_labels(contract_id=contract_id)
    contract = contract_store.get(contract_id)
    if contract is None:
        raise HTTPException(status_code=404, detail="Contract not found")
    return contract


def _resolve_period(contract: Contract, request: BillingRequest) -> tuple[BillingPeriod, MonthlyActuals]:
    periods = generate_billing_periods(contract)
    if request.period_id:
        period = next((p for p in periods if p.period_id == request.period_id), None)
    else:
        period = find_current_period(periods, request.as_of or default_evaluation_context().as_of)
    if period is None:
        raise HTTPException(status_code=404, detail="Billing period not found")
    bind_log_labels(period_id=period.period_id)
    return apply_override(contract, period, default_actuals(contract), request.override)


def _conversion_rate(request: BillingRequest) -> float | None:
    if request.usd_conversion_rate is None:
        return settings.default_usd_conversion_rate
    return request.usd_conversion_rate
