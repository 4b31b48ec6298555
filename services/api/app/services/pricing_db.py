from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import structlog
from services.api.app.services.pricing_base import (
    SLOT_COUNT,
    DiscountQuote,
    PricingQueryError,
    normalize_slots,
    parse_price,
)
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = structlog.get_logger(__name__)

_QUERY = text(
    "SELECT * FROM get_discount_price_by_plu(:plu1, :plu2, :plu3, :plu4, :plu5)"
)


class ProcedurePricingSource:
    """Pricing backed by the get_discount_price_by_plu database function.

    The function returns one row per cluster the discount was computed for. Choosing between
    them is the caller's job, so the cluster is not sent to the database.
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def quote_discount(
        self, slots: Sequence[int | None], cluster: str | None
    ) -> list[DiscountQuote]:
        del cluster
        padded = normalize_slots(slots)
        params = {f"plu{i}": padded[i - 1] for i in range(1, SLOT_COUNT + 1)}

        try:
            rows = self._db.execute(_QUERY, params).mappings().all()
        except SQLAlchemyError as e:
            self._db.rollback()
            raise PricingQueryError(padded, str(e)) from e

        quotes = [quote_from_row(row) for row in rows]
        logger.debug(
            "Discount candidates fetched",
            slots=list(padded),
            clusters=[q.cluster for q in quotes],
        )
        return quotes


def quote_from_row(row: Mapping[str, Any]) -> DiscountQuote:
    code = row.get("discount_code")
    return DiscountQuote(
        cluster=str(row.get("cluster") or ""),
        slot_prices=tuple(
            parse_price(row.get(f"plu{i}DiscountPrice")) for i in range(1, SLOT_COUNT + 1)
        ),
        discount_code=int(code) if code is not None else None,
        discount_price=parse_price(row.get("discount_price")),
    )
