"""
Shared fixtures for the liquidation workflow tests.
"""
import copy
from datetime import date

import pytest

from liquidagov.batch import BatchDispatcher, BatchLedger
from liquidagov.core.config import DEFAULT_GATEWAYS, DEFAULT_WORKFLOW, Settings
from liquidagov.core.record import DocumentAttachment, LiquidationRecord
from liquidagov.core.workflow import WorkflowEngine
from liquidagov.gateways import OutboxChannel, StaticExtractionGateway

TODAY = date(2024, 10, 17)


@pytest.fixture
def settings() -> Settings:
    workflow = copy.deepcopy(DEFAULT_WORKFLOW)
    workflow["config"]["settle_delay_seconds"] = 0
    return Settings(workflow=workflow, gateways=copy.deepcopy(DEFAULT_GATEWAYS), env={})


@pytest.fixture
def ledger() -> BatchLedger:
    return BatchLedger(TODAY)


@pytest.fixture
def gateway() -> StaticExtractionGateway:
    return StaticExtractionGateway()


@pytest.fixture
def engine(settings, gateway, ledger) -> WorkflowEngine:
    return WorkflowEngine(settings, extraction=gateway, ledger=ledger, clock=lambda: TODAY)


@pytest.fixture
def outbox() -> OutboxChannel:
    return OutboxChannel()


@pytest.fixture
def dispatcher(outbox) -> BatchDispatcher:
    return BatchDispatcher(outbox, "pagamentos@exemplo.gov.br")


@pytest.fixture
def invoice_doc() -> DocumentAttachment:
    return DocumentAttachment(filename="nf.pdf", mime_type="application/pdf", content=b"%PDF-1.4")


@pytest.fixture
def commitment_doc() -> DocumentAttachment:
    return DocumentAttachment(filename="ne.png", mime_type="image/png", content=b"\x89PNG")


def make_record(**overrides) -> LiquidationRecord:
    values = {
        "tender_reference": "PE 15/2024",
        "funding_source": "1500",
        "process_number": "23000.000123/2024-11",
        "commitment_number": "2024NE000123",
        "invoice_amount": "1.234,56",
        "supplier": "Papelaria Central LTDA",
        "payment_note": "2024NP001234",
        "system_note": "2024NS000567",
        "liquidation_date": TODAY,
        "due_date": date(2024, 11, 10),
        "attestation_order": "Fls. 15-16",
    }
    values.update(overrides)
    return LiquidationRecord(**values)


@pytest.fixture
def record_factory():
    return make_record
