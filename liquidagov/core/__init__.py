from .config import Settings, load_settings
from .errors import (
    CurrencyFormatError,
    EmptyBatchError,
    ExtractionError,
    InvalidTransitionError,
    LiquidationError,
    ValidationError,
    WorkflowBusyError,
)
from .record import DocumentAttachment, DocumentSet, LiquidationRecord
from .state import WorkflowStage, WorkflowState

__all__ = [
    "Settings",
    "load_settings",
    "CurrencyFormatError",
    "EmptyBatchError",
    "ExtractionError",
    "InvalidTransitionError",
    "LiquidationError",
    "ValidationError",
    "WorkflowBusyError",
    "DocumentAttachment",
    "DocumentSet",
    "LiquidationRecord",
    "WorkflowStage",
    "WorkflowState",
]
