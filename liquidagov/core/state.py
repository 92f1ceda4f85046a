from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, TypedDict, Union

from liquidagov.core.record import DocumentSet, LiquidationRecord


class WorkflowStage(str, Enum):
    UPLOAD = "UPLOAD"
    DATA_ENTRY = "DATA_ENTRY"
    REVIEW = "REVIEW"
    COMPLETED = "COMPLETED"
    BATCH_VIEW = "BATCH_VIEW"


STAGE_LABELS: Dict[WorkflowStage, str] = {
    WorkflowStage.UPLOAD: "Documentos",
    WorkflowStage.DATA_ENTRY: "Dados",
    WorkflowStage.REVIEW: "Liquidação",
    WorkflowStage.COMPLETED: "Conclusão",
    WorkflowStage.BATCH_VIEW: "Remessa",
}

# The progress bar only shows the single-liquidation steps.
PROGRESS_STEPS: List[WorkflowStage] = [
    WorkflowStage.UPLOAD,
    WorkflowStage.DATA_ENTRY,
    WorkflowStage.REVIEW,
    WorkflowStage.COMPLETED,
]


class LogEntry(TypedDict):
    stage: str
    action: str
    detail: Dict[str, Any]


class WorkflowState(TypedDict, total=False):
    run_id: str
    workflow_name: str
    config: Dict[str, Any]

    stage: WorkflowStage
    record: LiquidationRecord
    documents: DocumentSet
    attested: bool

    logs: List[LogEntry]


def append_log(
    logs_or_state: Union[WorkflowState, List[LogEntry]],
    stage: str,
    action: str,
    detail: Dict[str, Any],
) -> List[LogEntry]:
    if isinstance(logs_or_state, dict):
        logs = list(logs_or_state.get("logs", []))
    else:
        logs = list(logs_or_state)
    logs.append({"stage": stage, "action": action, "detail": detail})
    return logs


def stage_progress(stage: WorkflowStage) -> List[Dict[str, Any]]:
    """Completed/current/upcoming status of each progress step.

    The batch view is reached from the completed step, so it reports the
    whole bar as done.
    """
    if stage == WorkflowStage.BATCH_VIEW:
        current_index = len(PROGRESS_STEPS)
    else:
        current_index = PROGRESS_STEPS.index(stage)

    steps: List[Dict[str, Any]] = []
    for index, step in enumerate(PROGRESS_STEPS):
        if index < current_index:
            status = "completed"
        elif index == current_index:
            status = "current"
        else:
            status = "upcoming"
        steps.append(
            {
                "stage": step.value,
                "label": STAGE_LABELS[step],
                "number": index + 1,
                "status": status,
            }
        )
    return steps
