"""
Tests for settings loading and the error taxonomy.
"""
import json

import pytest

from liquidagov.core.config import load_settings
from liquidagov.core.errors import (
    EmptyBatchError,
    ExtractionError,
    InvalidTransitionError,
    LiquidationError,
    ValidationError,
    WorkflowBusyError,
)
from liquidagov.gateways import MailtoChannel, OutboxChannel, build_dispatch_channel


def test_defaults_when_files_missing(tmp_path):
    settings = load_settings(
        workflow_path=str(tmp_path / "missing.json"),
        gateways_path=str(tmp_path / "missing.yaml"),
    )

    assert settings.settle_delay == 1.0
    assert settings.currency_policy == "lenient"
    assert settings.default_destination == "pagamentos@exemplo.gov.br"
    assert settings.gateways["extraction"]["provider"] == "static"


def test_files_merge_over_defaults_and_resolve_env(tmp_path, monkeypatch):
    monkeypatch.setenv("DISPATCH_DESTINATION", "remessa@orgao.gov.br")
    workflow_path = tmp_path / "workflow.json"
    workflow_path.write_text(
        json.dumps(
            {
                "config": {
                    "settle_delay_seconds": 0.5,
                    "default_destination": "{{DISPATCH_DESTINATION}}",
                }
            }
        ),
        encoding="utf-8",
    )
    gateways_path = tmp_path / "gateways.yaml"
    gateways_path.write_text("dispatch:\n  channel: mailto\n", encoding="utf-8")

    settings = load_settings(str(workflow_path), str(gateways_path))

    assert settings.settle_delay == 0.5
    assert settings.default_destination == "remessa@orgao.gov.br"
    assert settings.currency_policy == "lenient"
    assert [stage["id"] for stage in settings.workflow["stages"]] == ["UPLOAD", "DATA_ENTRY", "REVIEW"]
    assert isinstance(build_dispatch_channel(settings), MailtoChannel)


def test_unresolved_destination_falls_back(settings):
    settings.workflow["config"]["default_destination"] = "{{DISPATCH_DESTINATION}}"

    assert settings.default_destination == "pagamentos@exemplo.gov.br"


def test_dispatch_channel_selection(settings):
    assert isinstance(build_dispatch_channel(settings), OutboxChannel)

    settings.gateways["dispatch"] = {"channel": "fax"}
    with pytest.raises(ValueError):
        build_dispatch_channel(settings)


class TestErrors:
    @pytest.mark.parametrize(
        "exc, code, status",
        [
            (ValidationError("no documents"), "LG-100", 422),
            (ExtractionError(), "LG-200", 502),
            (EmptyBatchError(), "LG-300", 409),
            (InvalidTransitionError("advance", "COMPLETED"), "LG-400", 409),
            (WorkflowBusyError(), "LG-401", 409),
        ],
    )
    def test_codes(self, exc, code, status):
        assert isinstance(exc, LiquidationError)
        assert exc.error_code == code
        assert exc.http_status == status

    def test_to_dict(self):
        exc = InvalidTransitionError("go_back", "UPLOAD")

        assert exc.to_dict() == {
            "error": True,
            "error_code": "LG-400",
            "message": "go_back not allowed from UPLOAD",
            "details": {"action": "go_back", "stage": "UPLOAD"},
        }
