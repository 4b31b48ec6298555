from __future__ import annotations

import os

from services.api.app.services.pricing_base import PricingSource
from services.api.app.services.pricing_mock import StaticPricingSource
from sqlalchemy.orm import Session


def get_pricing_source(db: Session) -> PricingSource:
    """Select the pricing collaborator based on env vars.

    Defaults to static pricing (no discounts) so tests and local SQLite databases work
    without the Postgres discount function.
    """

    mode = os.getenv("ORDERBRIDGE_PRICING_SOURCE", "static").strip().lower()

    if mode == "static":
        return StaticPricingSource()

    if mode == "procedure":
        from services.api.app.services.pricing_db import ProcedurePricingSource

        return ProcedurePricingSource(db)

    raise ValueError(
        f"Unknown ORDERBRIDGE_PRICING_SOURCE={mode!r}. Expected static or procedure."
    )
