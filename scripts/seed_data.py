from __future__ import annotations

import argparse
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

from services.api.app.db.database import db_session
from services.api.app.db.init_db import init_db
from services.api.app.db.models import Cart, Item, Product

_PRODUCTS = (
    # product_id, plu, type, core_name, price
    (101, 5101, "INDIVIDUAL", "HAMBURGUESA CLASICA", "35.00"),
    (201, 5201, "COMBO", "COMBO CLASICO", "55.00"),
    (301, 5301, "MIXTO", "MIXTO FAMILIAR", "89.00"),
)

_ITEMS = (
    # id, plu, core_group, core_description, price
    ("item-sdw", 7001, "SANDWICH", "HAMBURGUESA CLASICA", "35.00"),
    ("item-fri", 7002, "FRITOS", "PAPAS MEDIANAS", "15.00"),
    ("item-beb", 7003, "BEBIDAS", "GASEOSA MEDIANA", "12.00"),
    ("item-pos", 7004, "POSTRES", "PIE DE MANZANA", "10.00"),
)


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed a demo catalog and cart for local dev")
    parser.add_argument("--user-id", type=int, default=1)
    parser.add_argument("--reset-cart", action="store_true", help="Delete the user's cart first")
    args = parser.parse_args()

    init_db()

    db = db_session()
    try:
        for product_id, plu, kind, core_name, price in _PRODUCTS:
            if db.get(Product, product_id) is None:
                db.add(
                    Product(
                        product_id=product_id,
                        plu=plu,
                        type=kind,
                        core_name=core_name,
                        name=core_name.title(),
                        price=Decimal(price),
                    )
                )

        for item_id, plu, group, description, price in _ITEMS:
            if db.get(Item, item_id) is None:
                db.add(
                    Item(
                        id=item_id,
                        plu=plu,
                        enabled=True,
                        core_group=group,
                        core_description=description,
                        name=description.title(),
                        price=Decimal(price),
                    )
                )

        if args.reset_cart:
            db.query(Cart).filter(Cart.user_id == args.user_id).delete()

        existing = db.query(Cart).filter(Cart.user_id == args.user_id).limit(1).count()
        if existing == 0:
            now = datetime.utcnow()
            db.add(
                Cart(
                    id=uuid4().hex,
                    user_id=args.user_id,
                    source="menu",
                    product={"oldId": "101", "qty": "2", "name": "Hamburguesa"},
                    created_at=now,
                )
            )
            db.add(
                Cart(
                    id=uuid4().hex,
                    user_id=args.user_id,
                    source="menu",
                    product=[
                        {
                            "oldId": "201",
                            "qty": "1",
                            "name": "Combo Clasico",
                            "sections": [
                                {
                                    "sectionId": "principal",
                                    "items": [
                                        {"id": "item-sdw", "qty": "1", "type": "SDW"},
                                        {"id": "item-fri", "qty": "1", "type": "FRI"},
                                        {"id": "item-beb", "qty": "1", "type": "BEB"},
                                    ],
                                }
                            ],
                        },
                        {
                            "oldId": "301",
                            "qty": "1",
                            "name": "Mixto Familiar",
                            "items": [
                                {"id": "item-fri", "qty": "2"},
                                {"id": "item-pos", "qty": "1"},
                            ],
                        },
                    ],
                    created_at=now + timedelta(seconds=1),
                )
            )

        db.commit()
    finally:
        db.close()

    print(f"Seeded demo catalog and cart for user {args.user_id}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
