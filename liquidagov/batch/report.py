"""Plain-text renderings of liquidation records and batches."""
from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from liquidagov.batch.currency import format_brl, parse_brl_amount
from liquidagov.batch.ledger import BatchLedger
from liquidagov.core.errors import CurrencyFormatError
from liquidagov.core.record import LiquidationRecord

SUBJECT_TEMPLATE = "Remessa de Pagamento - {date}"
HANDOFF_NOTE = "Encaminhado para o setor de pagamentos."


def format_date_br(value: Optional[date]) -> str:
    if value is None:
        return "-"
    return value.strftime("%d/%m/%Y")


def display_amount(raw: str) -> str:
    try:
        return format_brl(parse_brl_amount(raw))
    except CurrencyFormatError:
        return raw or "-"


def batch_subject(operating_day: date) -> str:
    return SUBJECT_TEMPLATE.format(date=format_date_br(operating_day))


def review_summary(record: LiquidationRecord) -> Dict[str, str]:
    return {
        "Empenho": record.commitment_number,
        "Valor": record.invoice_amount,
        "Fornecedor": record.supplier,
        "Processo": record.process_number,
    }


def completion_summary(record: LiquidationRecord) -> Dict[str, str]:
    return {
        "Processo": record.process_number,
        "Ordem Ateste": record.attestation_order,
        "Nota Pagamento (NP)": record.payment_note,
        "Nota Sistema (NS)": record.system_note,
        "Vencimento": format_date_br(record.due_date),
    }


def _record_block(index: int, record: LiquidationRecord) -> List[str]:
    return [
        f"{index}. Fornecedor: {record.supplier or '-'}",
        f"   Empenho: {record.commitment_number}",
        f"   Processo: {record.process_number or '-'}",
        f"   NP: {record.payment_note} | NS: {record.system_note}",
        f"   Ordem do Ateste: {record.attestation_order}",
        f"   Liquidação: {format_date_br(record.liquidation_date)}"
        f" | Vencimento: {format_date_br(record.due_date)}",
        f"   Valor: {display_amount(record.invoice_amount)}",
    ]


def format_batch_report(ledger: BatchLedger) -> str:
    lines = [
        batch_subject(ledger.operating_day),
        f"Liquidações: {ledger.size()}",
        "",
    ]
    for index, record in enumerate(ledger.entries(), start=1):
        lines.extend(_record_block(index, record))
        lines.append("")
    lines.append(f"TOTAL: {ledger.formatted_total()}")
    return "\n".join(lines)
