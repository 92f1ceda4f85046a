from __future__ import annotations

import base64
import json
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Optional

import structlog
from openai import AsyncOpenAI

from liquidagov.core.errors import ExtractionError
from liquidagov.core.record import DocumentAttachment

logger = structlog.get_logger(__name__)

# Wire name -> record field.
WIRE_FIELDS: Dict[str, str] = {
    "pregao": "tender_reference",
    "fonteRecurso": "funding_source",
    "numeroProcesso": "process_number",
    "numeroEmpenho": "commitment_number",
    "valorNota": "invoice_amount",
    "fornecedor": "supplier",
}

EXTRACTION_PROMPT = """
Analise as imagens fornecidas (Nota Fiscal e/ou Nota de Empenho).
Extraia as seguintes informações se estiverem visíveis:
- Número do Pregão
- Fonte de Recurso
- Número do Processo Administrativo
- Número do Empenho
- Valor Total da Nota
- Nome do Fornecedor

Responda APENAS com um objeto JSON com as chaves pregao, fonteRecurso,
numeroProcesso, numeroEmpenho, valorNota e fornecedor. Se um campo não for
encontrado, deixe-o como string vazia ou null.
"""


@dataclass(frozen=True)
class ExtractionResult:
    tender_reference: Optional[str] = None
    funding_source: Optional[str] = None
    process_number: Optional[str] = None
    commitment_number: Optional[str] = None
    invoice_amount: Optional[str] = None
    supplier: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ExtractionResult":
        values: Dict[str, Optional[str]] = {}
        for wire_name, field_name in WIRE_FIELDS.items():
            raw = payload.get(wire_name)
            if raw is None:
                continue
            text = str(raw).strip()
            values[field_name] = text or None
        return cls(**values)

    def found(self) -> Dict[str, str]:
        """Only the fields the gateway actually read."""
        found: Dict[str, str] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if value and value.strip():
                found[item.name] = value.strip()
        return found


def _require_documents(
    invoice: Optional[DocumentAttachment],
    commitment: Optional[DocumentAttachment],
) -> List[DocumentAttachment]:
    documents = [doc for doc in (invoice, commitment) if doc is not None]
    if not documents:
        raise ExtractionError("no documents supplied")
    return documents


class ExtractionGateway:
    """Reads budget fields from an invoice and/or commitment document."""

    name = "base"

    async def extract(
        self,
        invoice: Optional[DocumentAttachment],
        commitment: Optional[DocumentAttachment],
    ) -> ExtractionResult:
        raise NotImplementedError


class StaticExtractionGateway(ExtractionGateway):
    """Offline gateway returning a configured payload.

    Used by the demo and whenever no extraction credential is configured.
    """

    name = "static"

    def __init__(self, payload: Optional[Dict[str, Any]] = None) -> None:
        self.payload = dict(payload or {})
        self.calls: List[Dict[str, Any]] = []

    async def extract(
        self,
        invoice: Optional[DocumentAttachment],
        commitment: Optional[DocumentAttachment],
    ) -> ExtractionResult:
        documents = _require_documents(invoice, commitment)
        self.calls.append({"documents": [doc.filename for doc in documents]})
        return ExtractionResult.from_payload(self.payload)


def _clean_json_response(content: str) -> str:
    content = content.strip()
    if content.startswith("```json"):
        content = content[7:]
    if content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


def _data_url(document: DocumentAttachment) -> str:
    encoded = base64.b64encode(document.content).decode("ascii")
    return f"data:{document.mime_type};base64,{encoded}"


def _content_part(document: DocumentAttachment) -> Dict[str, Any]:
    if document.mime_type.lower() == "application/pdf":
        return {
            "type": "file",
            "file": {"filename": document.filename, "file_data": _data_url(document)},
        }
    return {"type": "image_url", "image_url": {"url": _data_url(document)}}


class OpenAIExtractionGateway(ExtractionGateway):
    """Vision-model extraction returning the six budget fields as JSON."""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        self.client = client or AsyncOpenAI(api_key=api_key)
        self.model = model

    async def extract(
        self,
        invoice: Optional[DocumentAttachment],
        commitment: Optional[DocumentAttachment],
    ) -> ExtractionResult:
        documents = _require_documents(invoice, commitment)
        parts: List[Dict[str, Any]] = [_content_part(doc) for doc in documents]
        parts.append({"type": "text", "text": EXTRACTION_PROMPT})

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": parts}],
                response_format={"type": "json_object"},
                temperature=0.1,
            )
            content = response.choices[0].message.content or ""
        except Exception as exc:
            logger.warning("extraction.request_failed", model=self.model, error=str(exc))
            raise ExtractionError("extraction request failed", details={"error": str(exc)}) from exc

        if not content.strip():
            return ExtractionResult()
        try:
            payload = json.loads(_clean_json_response(content))
        except json.JSONDecodeError as exc:
            raise ExtractionError("extraction returned invalid JSON", details={"raw": content}) from exc
        if not isinstance(payload, dict):
            raise ExtractionError("extraction returned a non-object", details={"raw": content})

        result = ExtractionResult.from_payload(payload)
        logger.info("extraction.completed", model=self.model, fields=sorted(result.found()))
        return result
