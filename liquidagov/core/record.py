from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, replace
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from liquidagov.core.errors import ValidationError

DATE_FIELDS = ("liquidation_date", "due_date")

# Fields the extraction gateway may fill, in wire order.
EXTRACTABLE_FIELDS = (
    "tender_reference",
    "funding_source",
    "process_number",
    "commitment_number",
    "invoice_amount",
    "supplier",
)

REQUIRED_ENTRY_FIELDS = ("commitment_number", "invoice_amount")

REQUIRED_LIQUIDATION_FIELDS = (
    "payment_note",
    "system_note",
    "liquidation_date",
    "due_date",
    "attestation_order",
)

ACCEPTED_MIME_PREFIXES = ("image/",)
ACCEPTED_MIME_TYPES = ("application/pdf",)


def _coerce_date(name: str, value: Any) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return date.fromisoformat(text)
        except ValueError as exc:
            raise ValidationError(
                "invalid date",
                details={"field": name, "value": value},
            ) from exc
    raise ValidationError("invalid date", details={"field": name, "value": repr(value)})


@dataclass(frozen=True)
class LiquidationRecord:
    """Form state for one voucher.

    Instances are immutable; edits produce a new record through
    :meth:`with_fields`, so a record handed to the ledger can never change
    underneath it.
    """

    tender_reference: str = ""
    funding_source: str = ""
    process_number: str = ""
    commitment_number: str = ""
    invoice_amount: str = ""
    supplier: str = ""
    payment_note: str = ""
    system_note: str = ""
    liquidation_date: Optional[date] = None
    due_date: Optional[date] = None
    attestation_order: str = ""

    @classmethod
    def new(cls, today: date) -> "LiquidationRecord":
        return cls(liquidation_date=today)

    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def with_fields(self, **changes: Any) -> "LiquidationRecord":
        unknown = sorted(set(changes) - set(self.field_names()))
        if unknown:
            raise ValidationError("unknown fields", details={"fields": unknown})

        cleaned: Dict[str, Any] = {}
        for name, value in changes.items():
            if name in DATE_FIELDS:
                cleaned[name] = _coerce_date(name, value)
            else:
                cleaned[name] = "" if value is None else str(value)
        return replace(self, **cleaned)

    def is_blank(self, name: str) -> bool:
        value = getattr(self, name)
        if value is None:
            return True
        if isinstance(value, str):
            return not value.strip()
        return False

    def missing(self, names: Tuple[str, ...]) -> List[str]:
        return [name for name in names if self.is_blank(name)]

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for name in DATE_FIELDS:
            value = data[name]
            data[name] = value.isoformat() if value else ""
        return data


@dataclass(frozen=True)
class DocumentAttachment:
    filename: str
    mime_type: str
    content: bytes = field(repr=False)

    def __post_init__(self) -> None:
        mime = (self.mime_type or "").lower()
        if not (mime.startswith(ACCEPTED_MIME_PREFIXES) or mime in ACCEPTED_MIME_TYPES):
            raise ValidationError(
                "unsupported document type",
                details={
                    "filename": self.filename,
                    "mime_type": self.mime_type,
                    "expected": ["image/*", "application/pdf"],
                },
            )

    def describe(self) -> Dict[str, Any]:
        return {"filename": self.filename, "mime_type": self.mime_type, "size": len(self.content)}


@dataclass(frozen=True)
class DocumentSet:
    """The two optional uploads for one voucher: invoice and commitment."""

    invoice: Optional[DocumentAttachment] = None
    commitment: Optional[DocumentAttachment] = None

    @property
    def is_empty(self) -> bool:
        return self.invoice is None and self.commitment is None

    def with_document(self, kind: str, document: Optional[DocumentAttachment]) -> "DocumentSet":
        if kind not in ("invoice", "commitment"):
            raise ValidationError("unknown document kind", details={"kind": kind})
        return replace(self, **{kind: document})

    def describe(self) -> Dict[str, Any]:
        return {
            "invoice": self.invoice.describe() if self.invoice else None,
            "commitment": self.commitment.describe() if self.commitment else None,
        }
