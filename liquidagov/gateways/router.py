from __future__ import annotations

from typing import Any, Dict

import structlog

from liquidagov.core.config import Settings

from .dispatch_channels import MailtoChannel, OutboundChannel, OutboxChannel
from .extraction_client import ExtractionGateway, OpenAIExtractionGateway, StaticExtractionGateway

logger = structlog.get_logger(__name__)


def _has_credential(value: Any) -> bool:
    if not isinstance(value, str) or not value.strip():
        return False
    return not (value.startswith("{{") and value.endswith("}}"))


def build_extraction_gateway(settings: Settings) -> ExtractionGateway:
    cfg: Dict[str, Any] = settings.gateways.get("extraction", {})
    provider = str(cfg.get("provider", "static")).strip().lower()
    if provider == "static":
        return StaticExtractionGateway(cfg.get("payload") or {})
    if provider == "openai":
        api_key = cfg.get("api_key")
        if not _has_credential(api_key):
            logger.warning("extraction.credential_missing", provider=provider)
            return StaticExtractionGateway()
        return OpenAIExtractionGateway(api_key=api_key, model=cfg.get("model", "gpt-4o-mini"))
    raise ValueError(f"Unsupported extraction provider '{provider}'.")


def build_dispatch_channel(settings: Settings) -> OutboundChannel:
    cfg: Dict[str, Any] = settings.gateways.get("dispatch", {})
    channel = str(cfg.get("channel", "outbox")).strip().lower()
    if channel == "outbox":
        return OutboxChannel()
    if channel == "mailto":
        return MailtoChannel()
    raise ValueError(f"Unsupported dispatch channel '{channel}'.")
