from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

import structlog

from liquidagov.batch.ledger import BatchLedger
from liquidagov.batch.report import batch_subject, format_batch_report
from liquidagov.core.errors import EmptyBatchError, ValidationError
from liquidagov.gateways.dispatch_channels import OutboundChannel, OutboundMessage

logger = structlog.get_logger(__name__)

AddressPrompt = Callable[[str], Optional[str]]
ConfirmPrompt = Callable[[OutboundMessage], bool]

CANCELLED = "CANCELLED"
SENT = "SENT"
UNCONFIRMED = "UNCONFIRMED"


@dataclass(frozen=True)
class DispatchOutcome:
    status: str
    message: Optional[OutboundMessage] = None
    cleared_entries: int = 0


class BatchDispatcher:
    def __init__(self, channel: OutboundChannel, default_destination: str) -> None:
        self.channel = channel
        self.default_destination = default_destination

    def build_message(self, ledger: BatchLedger, destination: str) -> OutboundMessage:
        if ledger.size() == 0:
            raise EmptyBatchError(details={"operating_day": ledger.operating_day.isoformat()})
        return OutboundMessage(
            destination=destination,
            subject=batch_subject(ledger.operating_day),
            body=format_batch_report(ledger),
        )

    def dispatch(
        self,
        ledger: BatchLedger,
        address_prompt: AddressPrompt,
        confirm: ConfirmPrompt,
    ) -> DispatchOutcome:
        """Hand the day's batch to the outbound channel.

        ``address_prompt`` receives the default destination and returns the
        operator's choice, or None to cancel. ``confirm`` is asked after the
        hand-off; the ledger is cleared only when it returns True.
        """
        if ledger.size() == 0:
            raise EmptyBatchError(details={"operating_day": ledger.operating_day.isoformat()})

        destination = address_prompt(self.default_destination)
        if destination is None:
            logger.info("dispatch.cancelled", entries=ledger.size())
            return DispatchOutcome(status=CANCELLED)
        destination = destination.strip()
        if not destination:
            raise ValidationError(
                "missing destination",
                details={"operator_message": "Informe o e-mail de destino."},
            )

        message = self.build_message(ledger, destination)
        self.channel.send(message)

        if not confirm(message):
            logger.info("dispatch.unconfirmed", destination=destination, entries=ledger.size())
            return DispatchOutcome(status=UNCONFIRMED, message=message)

        cleared = ledger.size()
        ledger.clear()
        logger.info("dispatch.confirmed", destination=destination, entries=cleared)
        return DispatchOutcome(status=SENT, message=message, cleared_entries=cleared)
