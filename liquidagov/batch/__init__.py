from .currency import format_brl, parse_brl_amount
from .dispatcher import BatchDispatcher, DispatchOutcome
from .ledger import BatchLedger
from .report import batch_subject, format_batch_report

__all__ = [
    "BatchDispatcher",
    "BatchLedger",
    "DispatchOutcome",
    "batch_subject",
    "format_batch_report",
    "format_brl",
    "parse_brl_amount",
]
