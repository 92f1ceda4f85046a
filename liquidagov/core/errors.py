"""
Exceptions raised by the liquidation workflow.

Every error returns control to the operator at the stage where it occurred;
none of them is fatal to the session.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class LiquidationError(Exception):
    """
    Base exception for all workflow errors.

    Attributes:
        error_code: Unique error code (e.g., LG-100)
        message: Short machine-stable message
        details: Additional error context
    """
    error_code: str = "LG-000"
    http_status: int = 500

    def __init__(
        self,
        message: str = "unexpected workflow error",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response."""
        return {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(LiquidationError):
    """Operator-correctable problem that blocks a transition."""
    error_code = "LG-100"
    http_status = 422


class ExtractionError(LiquidationError):
    """Extraction gateway failure. Never blocks the workflow."""
    error_code = "LG-200"
    http_status = 502

    def __init__(self, message: str = "extraction failed", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class EmptyBatchError(LiquidationError):
    """Dispatch requested with nothing in the ledger."""
    error_code = "LG-300"
    http_status = 409

    def __init__(self, message: str = "empty batch", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class CurrencyFormatError(LiquidationError):
    """Amount string could not be read as BRL."""
    error_code = "LG-301"
    http_status = 422

    def __init__(self, raw: str, **kwargs: Any) -> None:
        super().__init__(f"unparseable amount: {raw!r}", details={"raw": raw}, **kwargs)


class InvalidTransitionError(LiquidationError):
    """Requested action is not offered from the current stage."""
    error_code = "LG-400"
    http_status = 409

    def __init__(self, action: str, stage: str, **kwargs: Any) -> None:
        message = f"{action} not allowed from {stage}"
        super().__init__(message, details={"action": action, "stage": stage}, **kwargs)


class WorkflowBusyError(LiquidationError):
    """A transition is already in flight for this workflow."""
    error_code = "LG-401"
    http_status = 409

    def __init__(self, message: str = "workflow busy", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
