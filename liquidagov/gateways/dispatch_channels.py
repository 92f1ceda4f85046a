from __future__ import annotations

import webbrowser
from dataclasses import dataclass
from typing import Callable, List, Optional
from urllib.parse import quote

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OutboundMessage:
    destination: str
    subject: str
    body: str


class OutboundChannel:
    """Fire-and-forget hand-off of a formatted batch report."""

    name = "base"

    def send(self, message: OutboundMessage) -> None:
        raise NotImplementedError


class OutboxChannel(OutboundChannel):
    """Keeps sent messages in memory."""

    name = "outbox"

    def __init__(self) -> None:
        self.sent: List[OutboundMessage] = []

    def send(self, message: OutboundMessage) -> None:
        self.sent.append(message)
        logger.info("dispatch.outbox", destination=message.destination, subject=message.subject)


def build_mailto_url(message: OutboundMessage) -> str:
    return (
        f"mailto:{quote(message.destination, safe='@,')}"
        f"?subject={quote(message.subject, safe='')}"
        f"&body={quote(message.body, safe='')}"
    )


class MailtoChannel(OutboundChannel):
    """Opens the operator's mail client with the report pre-filled."""

    name = "mailto"

    def __init__(self, opener: Optional[Callable[[str], bool]] = None) -> None:
        self.opener = opener or webbrowser.open
        self.last_url: Optional[str] = None

    def send(self, message: OutboundMessage) -> None:
        url = build_mailto_url(message)
        self.last_url = url
        opened = self.opener(url)
        logger.info("dispatch.mailto", destination=message.destination, opened=bool(opened))
