"""Discount selection for bundled and blended products.

Discounts are looked up by up to five positional catalog codes ("slots"). Combo components
are placed into slots by their role; a blended product uses slot 1 for its own code.

The pricing collaborator may return one candidate per pricing cluster. Selection order:

1. ``CLUSTER<cluster>`` when the order carries a cluster (``"03"`` -> ``"CLUSTER03"``)
2. ``DELIVERY``
3. nothing, in which case callers price from the catalog
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog
from services.api.app.services.pricing_base import DiscountQuote, PricingSource, normalize_slots

logger = structlog.get_logger(__name__)

DELIVERY_CLUSTER = "DELIVERY"
CLUSTER_PREFIX = "CLUSTER"

# Combo component role -> discount slot. Slot 1 is reserved for a blended product's own code.
DISCOUNT_SLOT_BY_ROLE: dict[str, int] = {
    "SDW": 2,
    "FRI": 3,
    "BEB": 4,
    "OTR": 5,
    "POS": 5,
}

# Roles folded into a combo's principal line.
PRINCIPAL_ROLES: frozenset[str] = frozenset({"SDW", "FRI"})

BLEND_SLOT = 1


def cluster_label(cluster: str | None) -> str | None:
    if not cluster:
        return None
    return f"{CLUSTER_PREFIX}{cluster}"


def select_quote(candidates: Sequence[DiscountQuote], cluster: str | None) -> DiscountQuote | None:
    target = cluster_label(cluster)
    if target is not None:
        for candidate in candidates:
            if candidate.cluster == target:
                return candidate

    for candidate in candidates:
        if candidate.cluster == DELIVERY_CLUSTER:
            return candidate

    return None


class DiscountResolver:
    def __init__(self, pricing: PricingSource) -> None:
        self._pricing = pricing

    def resolve(
        self, slots: Sequence[int | None], cluster: str | None = None
    ) -> DiscountQuote | None:
        """Query the pricing collaborator once and pick a quote.

        Lookup errors propagate; callers decide whether to fall back to catalog prices.
        """

        padded = normalize_slots(slots)
        if all(code is None for code in padded):
            return None

        candidates = self._pricing.quote_discount(padded, cluster)
        quote = select_quote(candidates, cluster)

        if quote is None:
            logger.info(
                "No applicable discount",
                slots=list(padded),
                cluster=cluster,
                available_clusters=[c.cluster for c in candidates],
            )
        else:
            logger.info(
                "Discount selected",
                slots=list(padded),
                cluster=quote.cluster,
                discount_code=quote.discount_code,
            )
        return quote
