from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

import pytest
from services.api.app.services.catalog_base import (
    CartEntry,
    CartOwner,
    CatalogProduct,
    ProductKind,
    SubItem,
)
from services.api.app.services.discount_resolver import DiscountResolver
from services.api.app.services.line_items import LineItemBuilder
from services.api.app.services.order_assembler import OrderAssembler, calculate_total
from services.api.app.services.order_errors import NoOrderLinesError
from services.api.app.services.order_utils import format_amount, generate_order_tag
from services.api.app.services.pricing_mock import StaticPricingSource
from structlog.testing import capture_logs

OWNER = CartOwner(user_id=7)

PRODUCTS = {
    101: CatalogProduct(product_id=101, price=Decimal("12.50"), plu=5101, core_name="HAMBURGUESA"),
    102: CatalogProduct(product_id=102, price=Decimal("0.10"), plu=5102, core_name="SALSA"),
    201: CatalogProduct(
        product_id=201, price=Decimal("55.00"), kind=ProductKind.COMBO, plu=5201, core_name="COMBO"
    ),
}

SUB_ITEMS = {
    "beb": SubItem(id="beb", price=Decimal("12.00"), plu=7003, description="GASEOSA", group="BEBIDAS"),
}


class _FakeCatalog:
    def resolve_product(self, product_id: int) -> CatalogProduct | None:
        return PRODUCTS.get(product_id)

    def resolve_sub_items(self, ids: Sequence[str]) -> list[SubItem]:
        return [SUB_ITEMS[i] for i in ids if i in SUB_ITEMS]


def _assembler() -> OrderAssembler:
    return OrderAssembler(LineItemBuilder(_FakeCatalog(), DiscountResolver(StaticPricingSource())))


def _entry(entry_id: str, product: object) -> CartEntry:
    return CartEntry(id=entry_id, owner=OWNER, product=product, source="menu")


def test_lines_are_numbered_across_entries() -> None:
    combo = {
        "oldId": "201",
        "qty": "1",
        "sections": [{"sectionId": "s", "items": [{"id": "beb", "qty": "1", "type": "BEB"}]}],
    }
    entries = [
        _entry("a", {"oldId": "101", "qty": "1"}),
        _entry("b", [combo, {"oldId": "101", "qty": "2"}]),
    ]

    assembled = _assembler().assemble("7", entries)

    assert [line.line_number for line in assembled.lines] == [1, 2, 3, 4]
    assert [line.amount for line in assembled.lines] == ["12.50", "55.00", "0.00", "25.00"]
    assert assembled.total == Decimal("92.50")


def test_unresolvable_products_are_skipped_without_gaps() -> None:
    entries = [
        _entry("a", {"oldId": "999", "qty": "1"}),
        _entry("b", {"oldId": "not-a-number"}),
        _entry("c", "garbage"),
        _entry("d", {"oldId": "101", "qty": "1"}),
    ]

    with capture_logs() as logs:
        assembled = _assembler().assemble("7", entries)

    assert [line.line_number for line in assembled.lines] == [1]
    assert assembled.total == Decimal("12.50")
    warnings = [entry for entry in logs if entry["log_level"] == "warning"]
    assert {entry["cart_entry_id"] for entry in warnings} >= {"b", "c"}


def test_no_valid_lines_raises() -> None:
    with pytest.raises(NoOrderLinesError, match="from 1 cart entries"):
        _assembler().assemble("7", [_entry("a", {"oldId": "999", "qty": "1"})])


def test_total_is_exact_sum_of_line_amounts() -> None:
    entries = [_entry(str(i), {"oldId": "102", "qty": "1"}) for i in range(3)]
    assembled = _assembler().assemble("7", entries)

    assert assembled.total == Decimal("0.30")
    assert format_amount(assembled.total) == "0.30"
    assert calculate_total(assembled.lines) == assembled.total


def test_format_amount_rounds_half_up() -> None:
    assert format_amount(Decimal("7")) == "7.00"
    assert format_amount(Decimal("2.345")) == "2.35"
    assert format_amount(Decimal("2.344")) == "2.34"


def test_generate_order_tag_shape() -> None:
    tag = generate_order_tag()
    assert len(tag) == 6
    assert tag.isalnum()
    assert tag.isascii()
