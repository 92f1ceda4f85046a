from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Tuple

import structlog

from liquidagov.batch.ledger import BatchLedger
from liquidagov.core.config import Settings
from liquidagov.core.errors import ValidationError
from liquidagov.core.record import (
    REQUIRED_ENTRY_FIELDS,
    REQUIRED_LIQUIDATION_FIELDS,
    DocumentSet,
    LiquidationRecord,
)
from liquidagov.core.state import WorkflowStage, WorkflowState, append_log
from liquidagov.gateways import ExtractionGateway, ExtractionResult

logger = structlog.get_logger(__name__)

MSG_NO_DOCUMENTS = "Por favor, anexe pelo menos um documento."
MSG_MISSING_REQUIRED = "Preencha os dados obrigatórios."
MSG_ATTESTATION = "A verificação do SICAF é obrigatória para prosseguir."
MSG_MISSING_LIQUIDATION = (
    "Por favor, preencha todos os dados da liquidação (Ordem do Ateste, NP, NS e datas)."
)


@dataclass
class NodeDeps:
    settings: Settings
    extraction: ExtractionGateway
    ledger: BatchLedger
    settle_delay: float


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def merge_extraction(
    record: LiquidationRecord, result: ExtractionResult
) -> Tuple[LiquidationRecord, List[str]]:
    """Fill only the fields that are still blank; first non-empty value wins."""
    applied = {
        name: value for name, value in result.found().items() if record.is_blank(name)
    }
    if not applied:
        return record, []
    return record.with_fields(**applied), sorted(applied)


class LiquidationNodes:
    def __init__(self, deps: NodeDeps) -> None:
        self.deps = deps

    async def upload(self, state: WorkflowState) -> WorkflowState:
        documents = state.get("documents") or DocumentSet()
        if documents.is_empty:
            raise ValidationError(
                "no documents",
                details={"operator_message": MSG_NO_DOCUMENTS},
            )

        record = state["record"]
        gateway = self.deps.extraction
        logs = append_log(
            state,
            "UPLOAD",
            "extraction.request",
            {"gateway": gateway.name, "documents": documents.describe()},
        )
        try:
            result = await gateway.extract(documents.invoice, documents.commitment)
        except Exception as exc:
            # Extraction is best-effort; the operator fills the fields by hand.
            logger.warning(
                "extraction.failed", gateway=gateway.name, error=str(exc), exc_info=True
            )
            logs = append_log(
                logs,
                "UPLOAD",
                "extraction.failed",
                {"gateway": gateway.name, "error": str(exc)},
            )
        else:
            record, applied = merge_extraction(record, result)
            logger.info("extraction.merged", gateway=gateway.name, fields=applied)
            logs = append_log(
                logs,
                "UPLOAD",
                "extraction.merged",
                {"found": sorted(result.found()), "applied": applied},
            )

        return {"record": record, "stage": WorkflowStage.DATA_ENTRY, "logs": logs}

    def data_entry(self, state: WorkflowState) -> WorkflowState:
        record = state["record"]
        missing = record.missing(REQUIRED_ENTRY_FIELDS)
        if missing:
            raise ValidationError(
                "missing required fields",
                details={"fields": missing, "operator_message": MSG_MISSING_REQUIRED},
            )

        logs = append_log(
            state,
            "DATA_ENTRY",
            "validated",
            {"commitment": record.commitment_number, "amount": record.invoice_amount},
        )
        return {"stage": WorkflowStage.REVIEW, "logs": logs}

    async def review(self, state: WorkflowState) -> WorkflowState:
        if not state.get("attested"):
            raise ValidationError(
                "attestation required",
                details={"operator_message": MSG_ATTESTATION},
            )
        record = state["record"]
        missing = record.missing(REQUIRED_LIQUIDATION_FIELDS)
        if missing:
            raise ValidationError(
                "missing liquidation fields",
                details={"fields": missing, "operator_message": MSG_MISSING_LIQUIDATION},
            )

        # Stand-in for the liquidation backend call: fixed wait, always succeeds.
        if self.deps.settle_delay > 0:
            await asyncio.sleep(self.deps.settle_delay)

        self.deps.ledger.append(record)
        logs = append_log(
            state,
            "REVIEW",
            "liquidated",
            {
                "commitment": record.commitment_number,
                "payment_note": record.payment_note,
                "system_note": record.system_note,
                "liquidated_at": _utc_now(),
                "ledger_size": self.deps.ledger.size(),
            },
        )
        return {"stage": WorkflowStage.COMPLETED, "logs": logs}
