"""Turns one product reference from a cart into priced order lines.

The ``build_*`` functions are pure: they take already-resolved catalog data and an optional
discount quote. ``LineItemBuilder`` does the lookups, picks the builder for the product kind,
and logs what happened.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

import structlog
from packages.shared.schemas.order_document import BlendComponentV1, LineKindV1, OrderLineV1
from services.api.app.services.catalog_base import (
    CartEntry,
    CatalogProduct,
    CatalogSource,
    ProductKind,
    ProductRef,
    SelectedSubItem,
    SubItem,
    parse_catalog_id,
    parse_quantity,
)
from services.api.app.services.discount_resolver import (
    BLEND_SLOT,
    DISCOUNT_SLOT_BY_ROLE,
    PRINCIPAL_ROLES,
    DiscountResolver,
)
from services.api.app.services.order_utils import format_amount
from services.api.app.services.pricing_base import SLOT_COUNT, DiscountQuote

logger = structlog.get_logger(__name__)

DEFAULT_SOURCE = "menu"

# Catalog group -> blend component role code expected by the intake system.
BLEND_ROLE_CODES: dict[str, str] = {
    "FRITOS": "FRI",
    "BEBIDAS": "BEB",
    "POSTRES": "POS",
    "SANDWICH": "SDW",
    "PREMIUM": "OTR",
}
FALLBACK_BLEND_ROLE = "OTR"


def blend_role_code(group: str | None) -> str:
    value = (group or "").strip().upper()
    if not value:
        return FALLBACK_BLEND_ROLE
    # TODO: replace the three-letter fallback once the intake team publishes the full group list.
    return BLEND_ROLE_CODES.get(value, value[:3])


def combo_discount_slots(
    ref: ProductRef, sub_items: dict[str, SubItem]
) -> tuple[int | None, ...]:
    slots: list[int | None] = [None] * SLOT_COUNT
    for selected in ref.selected_sub_items():
        info = sub_items.get(selected.id)
        if info is None or info.plu is None or not selected.role:
            continue
        slot = DISCOUNT_SLOT_BY_ROLE.get(selected.role.upper())
        if slot is not None:
            slots[slot - 1] = info.plu
    return tuple(slots)


def blend_selections(ref: ProductRef) -> list[SelectedSubItem]:
    selected = ref.selected_sub_items()
    if selected:
        return selected
    return list(ref.items)


def build_individual_lines(
    ref: ProductRef, product: CatalogProduct, line_number: int, source: str = DEFAULT_SOURCE
) -> list[OrderLineV1]:
    quantity = parse_quantity(ref.quantity)
    return [
        OrderLineV1(
            line_number=line_number,
            code=product.code(),
            quantity=quantity,
            description=product.description_for(ref.name),
            amount=format_amount(product.price * quantity),
            source=source,
        )
    ]


def build_combo_lines(
    ref: ProductRef,
    product: CatalogProduct,
    sub_items: dict[str, SubItem],
    quote: DiscountQuote | None,
    line_number: int,
    source: str = DEFAULT_SOURCE,
) -> list[OrderLineV1]:
    """Principal combo line plus one line per component that is not part of the principal.

    Without a quote the components are already included in the catalog price of the combo,
    so their lines carry a zero amount.
    """

    quantity = parse_quantity(ref.quantity)
    selected = ref.selected_sub_items()

    principal_amount = product.price * quantity
    if selected and quote is not None:
        sandwich = quote.price_for(DISCOUNT_SLOT_BY_ROLE["SDW"])
        fries = quote.price_for(DISCOUNT_SLOT_BY_ROLE["FRI"])
        if sandwich is not None and fries is not None:
            principal_amount = (sandwich + fries) * quantity

    lines = [
        OrderLineV1(
            line_number=line_number,
            code=product.code(),
            quantity=quantity,
            description=product.description_for(ref.name),
            amount=format_amount(principal_amount),
            source=source,
        )
    ]

    next_line = line_number + 1
    for item in selected:
        info = sub_items.get(item.id)
        if info is None or not info.description or not item.role:
            continue

        role = item.role.upper()
        if role in PRINCIPAL_ROLES:
            continue

        lines.append(
            OrderLineV1(
                line_number=next_line,
                code=info.code(),
                quantity=parse_quantity(item.quantity),
                description=info.description,
                amount=format_amount(_component_amount(role, item, info, quote, quantity)),
                source=source,
            )
        )
        next_line += 1

    return lines


def _component_amount(
    role: str,
    item: SelectedSubItem,
    info: SubItem,
    quote: DiscountQuote | None,
    combo_quantity: int,
) -> Decimal:
    if quote is None:
        return Decimal("0")

    slot = DISCOUNT_SLOT_BY_ROLE.get(role)
    discounted = quote.price_for(slot) if slot is not None else None
    if discounted is not None:
        return discounted * combo_quantity

    return info.price * parse_quantity(item.quantity)


def build_mixto_line(
    ref: ProductRef,
    product: CatalogProduct,
    sub_items: dict[str, SubItem],
    quote: DiscountQuote | None,
    line_number: int,
    source: str = DEFAULT_SOURCE,
) -> OrderLineV1:
    quantity = parse_quantity(ref.quantity)

    unit_price = product.price
    if quote is not None and quote.discount_price is not None:
        unit_price = quote.discount_price

    components: list[BlendComponentV1] = []
    for item in blend_selections(ref):
        info = sub_items.get(item.id)
        if info is None or not info.description:
            continue
        components.append(
            BlendComponentV1(
                role=blend_role_code(info.group),
                quantity=item.quantity,
                code=info.code(),
                description=info.description,
            )
        )

    return OrderLineV1(
        line_number=line_number,
        code=product.code(),
        quantity=quantity,
        description=product.description_for(ref.name),
        amount=format_amount(unit_price * quantity),
        kind=LineKindV1.MIXTO,
        blend_components=components,
        source=source,
        modifier_options=[],
    )


class LineItemBuilder:
    def __init__(self, catalog: CatalogSource, resolver: DiscountResolver) -> None:
        self._catalog = catalog
        self._resolver = resolver

    def build(
        self,
        entry: CartEntry,
        ref: ProductRef,
        line_number: int,
        cluster: str | None = None,
    ) -> list[OrderLineV1]:
        """Build the lines for one product reference.

        Never raises: an unresolvable or malformed product yields no lines.
        """

        source = entry.source or DEFAULT_SOURCE
        log = logger.bind(cart_entry_id=entry.id, catalog_id=ref.catalog_id)

        try:
            product_id = parse_catalog_id(ref.catalog_id)
            if product_id is None:
                log.warning("Product reference without a numeric catalog id")
                return []

            product = self._catalog.resolve_product(product_id)
            if product is None:
                log.error("Catalog product could not be resolved")
                return []

            if product.kind is ProductKind.COMBO:
                lines = self._build_combo(ref, product, line_number, cluster, source)
            elif product.kind is ProductKind.MIXTO:
                lines = [self._build_mixto(ref, product, line_number, cluster, source)]
            else:
                lines = build_individual_lines(ref, product, line_number, source)
        except Exception:
            log.exception("Failed to build order lines")
            return []

        log.info("Order lines built", kind=product.kind.value, lines=len(lines))
        return lines

    def _build_combo(
        self,
        ref: ProductRef,
        product: CatalogProduct,
        line_number: int,
        cluster: str | None,
        source: str,
    ) -> list[OrderLineV1]:
        selected = ref.selected_sub_items()
        if not selected:
            return build_combo_lines(ref, product, {}, None, line_number, source)

        sub_items = self._resolve_sub_items([item.id for item in selected])
        slots = combo_discount_slots(ref, sub_items)

        quote: DiscountQuote | None = None
        try:
            quote = self._resolver.resolve(slots, cluster)
        except Exception:
            logger.exception(
                "Combo discount lookup failed, using catalog price",
                product_id=product.product_id,
                slots=list(slots),
            )

        return build_combo_lines(ref, product, sub_items, quote, line_number, source)

    def _build_mixto(
        self,
        ref: ProductRef,
        product: CatalogProduct,
        line_number: int,
        cluster: str | None,
        source: str,
    ) -> OrderLineV1:
        quote: DiscountQuote | None = None
        if product.plu is not None:
            slots: list[int | None] = [None] * SLOT_COUNT
            slots[BLEND_SLOT - 1] = product.plu
            try:
                quote = self._resolver.resolve(slots, cluster)
            except Exception:
                logger.exception(
                    "Mixto discount lookup failed, using catalog price",
                    product_id=product.product_id,
                )

        selections = blend_selections(ref)
        sub_items = self._resolve_sub_items([item.id for item in selections])
        return build_mixto_line(ref, product, sub_items, quote, line_number, source)

    def _resolve_sub_items(self, ids: Sequence[str]) -> dict[str, SubItem]:
        if not ids:
            return {}
        return {item.id: item for item in self._catalog.resolve_sub_items(ids)}
