from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Protocol

SLOT_COUNT = 5


class PricingError(Exception):
    """Base class for pricing collaborator errors."""


class PricingQueryError(PricingError):
    def __init__(self, slots: Sequence[int | None], reason: str) -> None:
        super().__init__(f"Discount lookup failed for slots={list(slots)}: {reason}")
        self.slots = tuple(slots)


@dataclass(frozen=True, slots=True)
class DiscountQuote:
    """One candidate discount computed by the pricing collaborator for a cluster."""

    cluster: str
    slot_prices: tuple[Decimal | None, ...] = (None,) * SLOT_COUNT
    discount_code: int | None = None
    discount_price: Decimal | None = None

    def price_for(self, slot: int) -> Decimal | None:
        """Discounted unit price for a 1-based slot, or None when the quote has none."""

        if not 1 <= slot <= SLOT_COUNT:
            raise ValueError(f"Discount slot must be between 1 and {SLOT_COUNT}, got {slot}")
        if slot > len(self.slot_prices):
            return None
        return self.slot_prices[slot - 1]


class PricingSource(Protocol):
    def quote_discount(
        self, slots: Sequence[int | None], cluster: str | None
    ) -> list[DiscountQuote]: ...


def normalize_slots(slots: Sequence[int | None]) -> tuple[int | None, ...]:
    if len(slots) > SLOT_COUNT:
        raise ValueError(f"At most {SLOT_COUNT} discount slots are supported, got {len(slots)}")
    return tuple(slots) + (None,) * (SLOT_COUNT - len(slots))


def parse_price(raw: Any) -> Decimal | None:
    """Parse a price column. Empty values mean the quote has no price for that slot."""

    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None
    try:
        return Decimal(text)
    except InvalidOperation:
        return None
