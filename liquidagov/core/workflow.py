from __future__ import annotations

from datetime import date
from typing import Any, Callable, Dict, List, Optional

import structlog

from liquidagov.batch.ledger import BatchLedger
from liquidagov.core.config import Settings
from liquidagov.core.errors import (
    InvalidTransitionError,
    LiquidationError,
    WorkflowBusyError,
)
from liquidagov.core.graph import FORWARD_STAGES, build_graph, create_initial_state
from liquidagov.core.record import DocumentAttachment, DocumentSet, LiquidationRecord
from liquidagov.core.state import (
    LogEntry,
    WorkflowStage,
    WorkflowState,
    append_log,
    stage_progress,
)
from liquidagov.gateways import ExtractionGateway, build_extraction_gateway

logger = structlog.get_logger(__name__)

BACK_TRANSITIONS = {
    WorkflowStage.DATA_ENTRY: WorkflowStage.UPLOAD,
    WorkflowStage.REVIEW: WorkflowStage.DATA_ENTRY,
    WorkflowStage.BATCH_VIEW: WorkflowStage.COMPLETED,
}

EDITABLE_STAGES = (WorkflowStage.DATA_ENTRY, WorkflowStage.REVIEW)


class WorkflowEngine:
    """One operator's liquidation session.

    Owns the current stage, the in-progress record, the two optional
    document uploads and the day's batch ledger. ``advance`` runs the gated
    forward transition through the stage graph; every other move is a
    direct operator action. Only one ``advance`` may be in flight at a time.
    """

    def __init__(
        self,
        settings: Settings,
        extraction: Optional[ExtractionGateway] = None,
        ledger: Optional[BatchLedger] = None,
        clock: Optional[Callable[[], date]] = None,
    ) -> None:
        self.settings = settings
        self.clock = clock if clock is not None else date.today
        self.extraction = extraction if extraction is not None else build_extraction_gateway(settings)
        if ledger is None:
            ledger = BatchLedger(self.clock(), policy=settings.currency_policy)
        self.ledger = ledger
        self.graph = build_graph(settings, self.extraction, self.ledger)
        self._state: WorkflowState = create_initial_state(settings, self.clock())
        self._in_flight = False
        self._extracting = False

    @property
    def stage(self) -> WorkflowStage:
        return self._state["stage"]

    @property
    def record(self) -> LiquidationRecord:
        return self._state["record"]

    @property
    def documents(self) -> DocumentSet:
        return self._state["documents"]

    @property
    def attested(self) -> bool:
        return bool(self._state.get("attested"))

    @property
    def extracting(self) -> bool:
        return self._extracting

    @property
    def busy(self) -> bool:
        return self._in_flight

    @property
    def audit_log(self) -> List[LogEntry]:
        return list(self._state.get("logs", []))

    def _log(self, action: str, detail: Dict[str, Any]) -> None:
        self._state["logs"] = append_log(self._state, self.stage.value, action, detail)

    def _ensure_idle(self, action: str) -> None:
        if self._in_flight:
            raise WorkflowBusyError(details={"action": action, "stage": self.stage.value})

    def _ensure_stage(self, action: str, *allowed: WorkflowStage) -> None:
        self._ensure_idle(action)
        if self.stage not in allowed:
            raise InvalidTransitionError(action, self.stage.value)

    def attach_document(self, kind: str, document: Optional[DocumentAttachment]) -> None:
        self._ensure_stage("attach_document", WorkflowStage.UPLOAD)
        self._state["documents"] = self.documents.with_document(kind, document)
        self._log(
            "document.attached" if document else "document.removed",
            {"kind": kind, "document": document.describe() if document else None},
        )

    def remove_document(self, kind: str) -> None:
        self.attach_document(kind, None)

    def update_record(self, **fields: Any) -> LiquidationRecord:
        self._ensure_stage("update_record", *EDITABLE_STAGES)
        self._state["record"] = self.record.with_fields(**fields)
        return self.record

    def set_attestation(self, attested: bool) -> None:
        self._ensure_stage("set_attestation", WorkflowStage.REVIEW)
        self._state["attested"] = bool(attested)
        self._log("attestation", {"attested": bool(attested)})

    async def advance(self) -> WorkflowStage:
        self._ensure_idle("advance")
        stage = self.stage
        if stage not in FORWARD_STAGES:
            raise InvalidTransitionError("advance", stage.value)

        self._in_flight = True
        self._extracting = stage == WorkflowStage.UPLOAD and not self.documents.is_empty
        try:
            result = await self.graph.ainvoke(dict(self._state))
        except LiquidationError as exc:
            self._log("rejected", exc.to_dict())
            logger.info("workflow.rejected", stage=stage.value, error=exc.message)
            raise
        finally:
            self._in_flight = False
            self._extracting = False

        self._state = {**self._state, **result}
        logger.info("workflow.advanced", source=stage.value, target=self.stage.value)
        return self.stage

    def go_back(self) -> WorkflowStage:
        self._ensure_idle("go_back")
        target = BACK_TRANSITIONS.get(self.stage)
        if target is None:
            raise InvalidTransitionError("go_back", self.stage.value)
        self._log("back", {"target": target.value})
        self._state["stage"] = target
        return target

    def reset(self) -> WorkflowStage:
        """Start a fresh record. The ledger is left as it is."""
        self._ensure_idle("reset")
        logs = append_log(self._state, self.stage.value, "reset", {"ledger_size": self.ledger.size()})
        self._state = {
            **create_initial_state(self.settings, self.clock(), run_id=self._state.get("run_id")),
            "logs": logs,
        }
        return self.stage

    def start_new(self) -> WorkflowStage:
        self._ensure_stage("start_new", WorkflowStage.COMPLETED)
        return self.reset()

    def view_batch(self) -> WorkflowStage:
        self._ensure_stage("view_batch", WorkflowStage.COMPLETED)
        self._log("batch.view", {"ledger_size": self.ledger.size()})
        self._state["stage"] = WorkflowStage.BATCH_VIEW
        return self.stage

    def available_actions(self) -> List[str]:
        if self._in_flight:
            return []
        stage = self.stage
        actions: List[str] = []
        if stage in FORWARD_STAGES:
            actions.append("advance")
        if stage in BACK_TRANSITIONS:
            actions.append("go_back")
        if stage == WorkflowStage.COMPLETED:
            actions.append("start_new")
            if self.ledger.size() > 0:
                actions.append("view_batch")
        if stage == WorkflowStage.BATCH_VIEW:
            if self.ledger.size() > 0:
                actions.append("dispatch")
            actions.append("reset")
        return actions

    def snapshot(self) -> Dict[str, Any]:
        return {
            "run_id": self._state.get("run_id"),
            "stage": self.stage.value,
            "record": self.record.as_dict(),
            "documents": self.documents.describe(),
            "attested": self.attested,
            "extracting": self.extracting,
            "available_actions": self.available_actions(),
            "progress": stage_progress(self.stage),
            "ledger_size": self.ledger.size(),
        }
