from __future__ import annotations

import uuid
from datetime import date
from typing import Any, Dict, List

from langgraph.graph import END, START, StateGraph

from liquidagov.batch.ledger import BatchLedger
from liquidagov.core.config import Settings
from liquidagov.core.record import DocumentSet, LiquidationRecord
from liquidagov.core.state import WorkflowStage, WorkflowState
from liquidagov.gateways import ExtractionGateway
from liquidagov.nodes import LiquidationNodes, NodeDeps

# Stages that advance() drives through the graph. COMPLETED and BATCH_VIEW
# only move through explicit operator actions on the engine.
FORWARD_STAGES = (WorkflowStage.UPLOAD, WorkflowStage.DATA_ENTRY, WorkflowStage.REVIEW)


def build_deps(
    settings: Settings,
    extraction: ExtractionGateway,
    ledger: BatchLedger,
) -> NodeDeps:
    return NodeDeps(
        settings=settings,
        extraction=extraction,
        ledger=ledger,
        settle_delay=settings.settle_delay,
    )


def _stage_ids(settings: Settings) -> List[str]:
    stages = settings.workflow.get("stages", [])
    stage_ids = [stage.get("id") for stage in stages if stage.get("id")]
    return stage_ids or [stage.value for stage in FORWARD_STAGES]


def build_graph(
    settings: Settings,
    extraction: ExtractionGateway,
    ledger: BatchLedger,
):
    """Compile one gated transition per forward stage.

    Each invocation enters at the node for the current stage, runs its
    validation gate and side effects, and ends. A gate failure raises out
    of ``ainvoke`` and leaves the caller's state untouched.
    """
    deps = build_deps(settings, extraction, ledger)
    nodes = LiquidationNodes(deps)

    builder = StateGraph(WorkflowState)
    stage_handlers = {
        WorkflowStage.UPLOAD.value: nodes.upload,
        WorkflowStage.DATA_ENTRY.value: nodes.data_entry,
        WorkflowStage.REVIEW.value: nodes.review,
    }

    stage_ids = _stage_ids(settings)
    for stage_id in stage_ids:
        handler = stage_handlers.get(stage_id)
        if handler is None:
            raise ValueError(f"Missing handler for stage '{stage_id}'")
        builder.add_node(stage_id, handler)

    missing = sorted(set(stage_handlers) - set(stage_ids))
    if missing:
        raise ValueError(f"Workflow config is missing stages: {', '.join(missing)}")

    def entry_router(state: WorkflowState) -> str:
        stage = state.get("stage", WorkflowStage.UPLOAD)
        return WorkflowStage(stage).value

    builder.add_conditional_edges(START, entry_router, {stage_id: stage_id for stage_id in stage_ids})
    for stage_id in stage_ids:
        builder.add_edge(stage_id, END)

    return builder.compile()


def create_initial_state(
    settings: Settings, today: date, run_id: str | None = None
) -> WorkflowState:
    run_id = run_id or f"run_{uuid.uuid4().hex[:10]}"
    config: Dict[str, Any] = dict(settings.workflow_config)
    return {
        "run_id": run_id,
        "workflow_name": settings.workflow.get("workflow_name", "LiquidationWorkflow"),
        "config": config,
        "stage": WorkflowStage.UPLOAD,
        "record": LiquidationRecord.new(today),
        "documents": DocumentSet(),
        "attested": False,
        "logs": [],
    }
