"""
Tests for the extraction gateways and the extraction merge policy.
"""
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from liquidagov.core.errors import ExtractionError
from liquidagov.core.record import LiquidationRecord
from liquidagov.gateways import (
    ExtractionResult,
    OpenAIExtractionGateway,
    StaticExtractionGateway,
    build_extraction_gateway,
)
from liquidagov.nodes import merge_extraction


def _openai_gateway(content):
    client = MagicMock()
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    client.chat.completions.create = AsyncMock(return_value=response)
    return OpenAIExtractionGateway(api_key="test-key", client=client), client


class TestExtractionResult:
    def test_from_payload_maps_wire_names(self):
        result = ExtractionResult.from_payload(
            {"numeroEmpenho": " 2024NE000123 ", "valorNota": "65,44", "fornecedor": None, "extra": "x"}
        )

        assert result.found() == {"commitment_number": "2024NE000123", "invoice_amount": "65,44"}

    def test_empty_strings_are_not_found(self):
        assert ExtractionResult.from_payload({"pregao": "", "fonteRecurso": "  "}).found() == {}


class TestMergeExtraction:
    def test_fills_blank_fields_only(self):
        record = LiquidationRecord(commitment_number="2024NE000001")
        result = ExtractionResult(commitment_number="2024NE999999", supplier="ACME")

        merged, applied = merge_extraction(record, result)

        assert merged.commitment_number == "2024NE000001"
        assert merged.supplier == "ACME"
        assert applied == ["supplier"]

    def test_merge_is_idempotent(self):
        result = ExtractionResult(process_number="23000.1/2024", invoice_amount="10,00")
        once, _ = merge_extraction(LiquidationRecord(), result)
        twice, applied = merge_extraction(once, ExtractionResult(invoice_amount="99,00"))

        assert twice == once
        assert applied == []


class TestStaticGateway:
    @pytest.mark.asyncio
    async def test_requires_a_document(self):
        with pytest.raises(ExtractionError):
            await StaticExtractionGateway().extract(None, None)

    @pytest.mark.asyncio
    async def test_accepts_single_document(self, commitment_doc):
        gateway = StaticExtractionGateway({"numeroEmpenho": "2024NE000123"})

        result = await gateway.extract(None, commitment_doc)

        assert result.commitment_number == "2024NE000123"


class TestOpenAIGateway:
    @pytest.mark.asyncio
    async def test_parses_json_response(self, invoice_doc, commitment_doc):
        payload = {"numeroEmpenho": "2024NE000123", "valorNota": "1.234,56"}
        gateway, client = _openai_gateway("```json\n" + json.dumps(payload) + "\n```")

        result = await gateway.extract(invoice_doc, commitment_doc)

        assert result.found() == {"commitment_number": "2024NE000123", "invoice_amount": "1.234,56"}
        parts = client.chat.completions.create.call_args.kwargs["messages"][0]["content"]
        assert parts[0]["type"] == "file"
        assert parts[1]["type"] == "image_url"
        assert parts[1]["image_url"]["url"].startswith("data:image/png;base64,")
        assert parts[-1]["type"] == "text"

    @pytest.mark.asyncio
    async def test_invalid_json_raises_extraction_error(self, invoice_doc):
        gateway, _ = _openai_gateway("not json")

        with pytest.raises(ExtractionError):
            await gateway.extract(invoice_doc, None)

    @pytest.mark.asyncio
    async def test_request_failure_raises_extraction_error(self, invoice_doc):
        gateway, client = _openai_gateway("{}")
        client.chat.completions.create.side_effect = RuntimeError("timeout")

        with pytest.raises(ExtractionError) as exc_info:
            await gateway.extract(invoice_doc, None)

        assert exc_info.value.details["error"] == "timeout"

    @pytest.mark.asyncio
    async def test_empty_response_is_empty_result(self, invoice_doc):
        gateway, _ = _openai_gateway("")

        assert (await gateway.extract(invoice_doc, None)).found() == {}


class TestGatewayRouter:
    def test_static_by_default(self, settings):
        assert isinstance(build_extraction_gateway(settings), StaticExtractionGateway)

    def test_openai_without_credential_falls_back(self, settings):
        settings.gateways["extraction"] = {"provider": "openai", "api_key": "{{OPENAI_API_KEY}}"}

        assert isinstance(build_extraction_gateway(settings), StaticExtractionGateway)

    def test_openai_with_credential(self, settings):
        settings.gateways["extraction"] = {"provider": "openai", "api_key": "sk-test", "model": "gpt-4o"}

        gateway = build_extraction_gateway(settings)

        assert isinstance(gateway, OpenAIExtractionGateway)
        assert gateway.model == "gpt-4o"

    def test_unknown_provider(self, settings):
        settings.gateways["extraction"] = {"provider": "tesseract"}

        with pytest.raises(ValueError):
            build_extraction_gateway(settings)
