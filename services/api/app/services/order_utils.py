from __future__ import annotations

import secrets
import string
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

_TAG_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
_CENT = Decimal("0.01")


def generate_order_tag(length: int = 6) -> str:
    return "".join(secrets.choice(_TAG_ALPHABET) for _ in range(length))


def format_date(moment: datetime) -> str:
    return moment.strftime("%d/%m/%Y")


def format_time(moment: datetime) -> str:
    return moment.strftime("%H:%M:%S")


def format_amount(value: Decimal) -> str:
    """Two-decimal fixed string, e.g. Decimal("7") -> "7.00"."""

    return str(value.quantize(_CENT, rounding=ROUND_HALF_UP))


def sum_amounts(amounts: list[str]) -> Decimal:
    return sum((Decimal(a) for a in amounts), Decimal("0"))
