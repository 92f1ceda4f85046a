"""Reading and writing Brazilian real amounts ("R$ 1.234,56")."""
from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from liquidagov.core.errors import CurrencyFormatError

CENTS = Decimal("0.01")

_SYMBOL = re.compile(r"r\$", re.IGNORECASE)
_GROUPED_COMMA = re.compile(r"^-?\d{1,3}(\.\d{3})*(,\d{1,2})?$")
_PLAIN_COMMA = re.compile(r"^-?\d+(,\d{1,2})?$")
_THOUSANDS_ONLY = re.compile(r"^-?\d{1,3}(\.\d{3})+$")
_DECIMAL_POINT = re.compile(r"^-?\d+(\.\d{1,2})?$")


def parse_brl_amount(raw: str) -> Decimal:
    """Normalize a localized amount string to a Decimal with two decimal places.

    Accepts an optional ``R$`` symbol, any whitespace, ``.`` as the thousands
    separator and ``,`` as the decimal separator. A string with only dots is
    read as thousands-grouped when every group has three digits
    (``"1.234"`` is 1234) and as a decimal point otherwise (``"65.44"``).
    Misplaced group separators and more than two decimal places are
    rejected rather than rounded.
    """
    if raw is None:
        raise CurrencyFormatError(str(raw))

    text = _SYMBOL.sub("", str(raw))
    text = "".join(text.split())
    if not text:
        raise CurrencyFormatError(str(raw))

    if "," in text:
        if not (_GROUPED_COMMA.match(text) or _PLAIN_COMMA.match(text)):
            raise CurrencyFormatError(str(raw))
        text = text.replace(".", "").replace(",", ".")
    elif _THOUSANDS_ONLY.match(text):
        text = text.replace(".", "")
    elif not _DECIMAL_POINT.match(text):
        raise CurrencyFormatError(str(raw))
    try:
        value = Decimal(text)
    except InvalidOperation as exc:
        raise CurrencyFormatError(str(raw)) from exc
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_brl(value: Decimal) -> str:
    quantized = Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)
    grouped = f"{abs(quantized):,.2f}"
    localized = grouped.replace(",", "_").replace(".", ",").replace("_", ".")
    sign = "-" if quantized < 0 else ""
    return f"{sign}R$ {localized}"
