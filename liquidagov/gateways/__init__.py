from .dispatch_channels import MailtoChannel, OutboundChannel, OutboundMessage, OutboxChannel
from .extraction_client import (
    ExtractionGateway,
    ExtractionResult,
    OpenAIExtractionGateway,
    StaticExtractionGateway,
)
from .router import build_dispatch_channel, build_extraction_gateway

__all__ = [
    "ExtractionGateway",
    "ExtractionResult",
    "MailtoChannel",
    "OpenAIExtractionGateway",
    "OutboundChannel",
    "OutboundMessage",
    "OutboxChannel",
    "StaticExtractionGateway",
    "build_dispatch_channel",
    "build_extraction_gateway",
]
