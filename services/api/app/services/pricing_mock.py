from __future__ import annotations

from collections.abc import Iterable, Sequence

from services.api.app.services.pricing_base import DiscountQuote, normalize_slots


class StaticPricingSource:
    """In-memory pricing with fixed candidate quotes per slot combination.

    With no quotes configured every lookup comes back empty, so orders are priced from the
    catalog. Calls are recorded for inspection.
    """

    def __init__(
        self,
        quotes: dict[tuple[int | None, ...], Iterable[DiscountQuote]] | None = None,
    ) -> None:
        self._quotes = {
            normalize_slots(slots): list(candidates) for slots, candidates in (quotes or {}).items()
        }
        self.calls: list[tuple[tuple[int | None, ...], str | None]] = []

    def quote_discount(
        self, slots: Sequence[int | None], cluster: str | None
    ) -> list[DiscountQuote]:
        padded = normalize_slots(slots)
        self.calls.append((padded, cluster))
        return list(self._quotes.get(padded, []))
