from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal

import structlog
from services.api.app.db.models import Cart, Item, Order, Product
from services.api.app.services.catalog_base import (
    CartEntry,
    CartOwner,
    CatalogProduct,
    ProductKind,
    SubItem,
)
from sqlalchemy import select
from sqlalchemy.orm import Session

logger = structlog.get_logger(__name__)


class DbCartSource:
    """Reads stored cart rows for a user (preferred) or an anonymous session."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def fetch_cart(self, owner: CartOwner) -> list[CartEntry]:
        stmt = select(Cart).order_by(Cart.created_at.asc(), Cart.id.asc())
        if owner.user_id is not None:
            stmt = stmt.where(Cart.user_id == owner.user_id)
        else:
            stmt = stmt.where(Cart.session_id == owner.session_id)

        rows = self._db.scalars(stmt).all()
        logger.info(
            "Cart fetched",
            user_id=owner.user_id,
            session_id=owner.session_id,
            count=len(rows),
        )
        return [
            CartEntry(id=row.id, owner=owner, product=row.product, source=row.source)
            for row in rows
        ]


class DbCatalogSource:
    def __init__(self, db: Session) -> None:
        self._db = db

    def resolve_product(self, product_id: int) -> CatalogProduct | None:
        row = self._db.get(Product, product_id)
        if row is None:
            logger.warning("Catalog product not found", product_id=product_id)
            return None

        return CatalogProduct(
            product_id=row.product_id,
            price=_money(row.price),
            kind=ProductKind.from_catalog(row.type),
            plu=row.plu,
            core_name=row.core_name,
            name=row.name,
        )

    def resolve_sub_items(self, ids: Sequence[str]) -> list[SubItem]:
        unique_ids = list(dict.fromkeys(ids))
        if not unique_ids:
            return []

        rows = self._db.scalars(select(Item).where(Item.id.in_(unique_ids))).all()
        logger.info("Catalog sub-items resolved", requested=len(unique_ids), found=len(rows))
        return [
            SubItem(
                id=row.id,
                price=_money(row.price),
                plu=row.plu,
                description=row.core_description,
                group=row.core_group,
            )
            for row in rows
        ]


class DbOrderStore:
    """Persists the order root record. Its id becomes the order number."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def insert_order(
        self,
        *,
        owner: CartOwner,
        contact_name: str,
        contact_phone: str,
        invoice_name: str,
        invoice_nit: str,
        delivery_address: str,
        restaurant: str,
        total: Decimal,
        lines: list[dict],
        observations: str,
        channel: str,
        created_at: datetime,
    ) -> str:
        order = Order(
            contact_name=contact_name,
            contact_phone=contact_phone,
            invoice_name=invoice_name,
            invoice_nit=invoice_nit,
            delivery_address=delivery_address,
            restaurant_id=_int_or_none(restaurant),
            total_amount=total,
            user_id=owner.user_id,
            session_id=owner.session_id,
            detail_data=lines,
            observations=observations,
            channel=channel,
            created_at=created_at,
        )
        self._db.add(order)
        self._db.commit()

        logger.info("Order root record inserted", order_id=order.id)
        return str(order.id)


def _money(value: Decimal | None) -> Decimal:
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def _int_or_none(value: str) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
