from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Tuple

import structlog

from liquidagov.batch.currency import format_brl, parse_brl_amount
from liquidagov.core.errors import CurrencyFormatError
from liquidagov.core.record import LiquidationRecord

logger = structlog.get_logger(__name__)

LENIENT = "lenient"
STRICT = "strict"


class BatchLedger:
    """Finalized liquidations for one operating day, in finalization order.

    Amount aggregation is lenient by default: an amount that cannot be read
    as BRL contributes zero to :meth:`total`. With ``policy="strict"`` the
    first unreadable amount raises :class:`CurrencyFormatError` instead.
    Identical records are kept as separate entries.
    """

    def __init__(self, operating_day: date, policy: str = LENIENT) -> None:
        if policy not in (LENIENT, STRICT):
            raise ValueError(f"Unsupported currency policy '{policy}'.")
        self.operating_day = operating_day
        self.policy = policy
        self._entries: List[LiquidationRecord] = []

    def append(self, record: LiquidationRecord) -> LiquidationRecord:
        # Records are frozen dataclasses, so holding the reference is a snapshot.
        self._entries.append(record)
        logger.info(
            "ledger.appended",
            commitment=record.commitment_number,
            amount=record.invoice_amount,
            entries=len(self._entries),
        )
        return record

    def entries(self) -> Tuple[LiquidationRecord, ...]:
        return tuple(self._entries)

    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def amount_of(self, record: LiquidationRecord) -> Decimal:
        try:
            return parse_brl_amount(record.invoice_amount)
        except CurrencyFormatError:
            if self.policy == STRICT:
                raise
            logger.warning(
                "ledger.unparseable_amount",
                commitment=record.commitment_number,
                amount=record.invoice_amount,
            )
            return Decimal("0.00")

    def total(self) -> Decimal:
        return sum((self.amount_of(record) for record in self._entries), Decimal("0.00"))

    def formatted_total(self) -> str:
        return format_brl(self.total())

    def clear(self) -> None:
        cleared = len(self._entries)
        self._entries.clear()
        logger.info("ledger.cleared", entries=cleared)
