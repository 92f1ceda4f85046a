from __future__ import annotations

import base64
import binascii
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from liquidagov.batch import BatchDispatcher
from liquidagov.batch.report import HANDOFF_NOTE, completion_summary, display_amount, review_summary
from liquidagov.core.config import Settings, load_settings
from liquidagov.core.errors import LiquidationError
from liquidagov.core.logging_config import configure_logging
from liquidagov.core.record import DocumentAttachment
from liquidagov.core.state import WorkflowStage
from liquidagov.core.workflow import WorkflowEngine
from liquidagov.gateways import build_dispatch_channel


class DocumentUpload(BaseModel):
    filename: str = Field(..., min_length=1)
    mime_type: str = Field(..., min_length=1)
    content_base64: str = Field(..., min_length=1)


class RecordUpdate(BaseModel):
    tender_reference: Optional[str] = None
    funding_source: Optional[str] = None
    process_number: Optional[str] = None
    commitment_number: Optional[str] = None
    invoice_amount: Optional[str] = None
    supplier: Optional[str] = None
    payment_note: Optional[str] = None
    system_note: Optional[str] = None
    liquidation_date: Optional[date] = None
    due_date: Optional[date] = None
    attestation_order: Optional[str] = None


class AttestationRequest(BaseModel):
    attested: bool


class DispatchRequest(BaseModel):
    destination: Optional[str] = None
    confirmed: bool = False
    cancel: bool = False

    def address(self, default: str) -> Optional[str]:
        if self.cancel:
            return None
        return default if self.destination is None else self.destination


class DispatchResponse(BaseModel):
    status: str
    subject: Optional[str] = None
    body: Optional[str] = None
    cleared_entries: int = 0
    ledger_size: int


class BatchResponse(BaseModel):
    operating_day: date
    size: int
    total: str
    entries: List[Dict[str, Any]]


def _workflow_view(engine: WorkflowEngine) -> Dict[str, Any]:
    view = engine.snapshot()
    if engine.stage == WorkflowStage.REVIEW:
        view["summary"] = review_summary(engine.record)
    elif engine.stage == WorkflowStage.COMPLETED:
        view["summary"] = completion_summary(engine.record)
        view["note"] = HANDOFF_NOTE
    return view


def create_app(
    settings: Settings | None = None,
    engine: WorkflowEngine | None = None,
    dispatcher: BatchDispatcher | None = None,
) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level, settings.log_format)
    if engine is None:
        engine = WorkflowEngine(settings)
    if dispatcher is None:
        dispatcher = BatchDispatcher(build_dispatch_channel(settings), settings.default_destination)

    app = FastAPI(title="LiquidaGov Liquidation Workflow API")
    app.state.engine = engine
    app.state.dispatcher = dispatcher

    @app.exception_handler(LiquidationError)
    async def liquidation_error_handler(request: Request, exc: LiquidationError) -> JSONResponse:
        return JSONResponse(status_code=exc.http_status, content=exc.to_dict())

    @app.get("/workflow")
    async def get_workflow() -> Dict[str, Any]:
        return _workflow_view(engine)

    @app.put("/workflow/documents/{kind}")
    async def attach_document(kind: str, upload: DocumentUpload) -> Dict[str, Any]:
        try:
            content = base64.b64decode(upload.content_base64, validate=True)
        except (binascii.Error, ValueError):
            raise HTTPException(status_code=400, detail="content_base64 is not valid base64.")
        engine.attach_document(
            kind,
            DocumentAttachment(filename=upload.filename, mime_type=upload.mime_type, content=content),
        )
        return _workflow_view(engine)

    @app.delete("/workflow/documents/{kind}")
    async def remove_document(kind: str) -> Dict[str, Any]:
        engine.remove_document(kind)
        return _workflow_view(engine)

    @app.patch("/workflow/record")
    async def update_record(update: RecordUpdate) -> Dict[str, Any]:
        engine.update_record(**update.model_dump(exclude_unset=True))
        return _workflow_view(engine)

    @app.put("/workflow/attestation")
    async def set_attestation(request: AttestationRequest) -> Dict[str, Any]:
        engine.set_attestation(request.attested)
        return _workflow_view(engine)

    @app.post("/workflow/advance")
    async def advance() -> Dict[str, Any]:
        await engine.advance()
        return _workflow_view(engine)

    @app.post("/workflow/back")
    async def go_back() -> Dict[str, Any]:
        engine.go_back()
        return _workflow_view(engine)

    @app.post("/workflow/reset")
    async def reset() -> Dict[str, Any]:
        engine.reset()
        return _workflow_view(engine)

    @app.post("/workflow/start-new")
    async def start_new() -> Dict[str, Any]:
        engine.start_new()
        return _workflow_view(engine)

    @app.post("/workflow/batch-view")
    async def view_batch() -> Dict[str, Any]:
        engine.view_batch()
        return _workflow_view(engine)

    @app.get("/batch", response_model=BatchResponse)
    async def get_batch() -> BatchResponse:
        ledger = engine.ledger
        entries = []
        for record in ledger.entries():
            entry = record.as_dict()
            entry["display_amount"] = display_amount(record.invoice_amount)
            entries.append(entry)
        return BatchResponse(
            operating_day=ledger.operating_day,
            size=ledger.size(),
            total=ledger.formatted_total(),
            entries=entries,
        )

    @app.post("/batch/dispatch", response_model=DispatchResponse)
    async def dispatch_batch(request: DispatchRequest) -> DispatchResponse:
        outcome = dispatcher.dispatch(
            engine.ledger,
            address_prompt=request.address,
            confirm=lambda message: request.confirmed,
        )
        return DispatchResponse(
            status=outcome.status,
            subject=outcome.message.subject if outcome.message else None,
            body=outcome.message.body if outcome.message else None,
            cleared_entries=outcome.cleared_entries,
            ledger_size=engine.ledger.size(),
        )

    return app


app = create_app()
