from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol


class CatalogError(Exception):
    """Base class for cart and catalog errors."""


class MalformedCartError(CatalogError):
    """A cart payload does not have the shape of a product reference."""


class ProductKind(str, Enum):
    INDIVIDUAL = "INDIVIDUAL"
    COMBO = "COMBO"
    MIXTO = "MIXTO"

    @classmethod
    def from_catalog(cls, raw: str | None) -> "ProductKind":
        value = (raw or "").strip().upper()
        if value == cls.COMBO.value:
            return cls.COMBO
        if value == cls.MIXTO.value:
            return cls.MIXTO
        return cls.INDIVIDUAL


@dataclass(frozen=True, slots=True)
class CartOwner:
    """A signed-in user or an anonymous session. At least one is set."""

    user_id: int | None = None
    session_id: str | None = None

    def __post_init__(self) -> None:
        if self.user_id is None and not self.session_id:
            raise ValueError("CartOwner requires a user_id or a session_id")


@dataclass(frozen=True, slots=True)
class SelectedSubItem:
    id: str
    # Kept as the cart stored it; the intake system receives it verbatim.
    quantity: str = "1"
    role: str | None = None


@dataclass(frozen=True, slots=True)
class SectionSelection:
    items: tuple[SelectedSubItem, ...]
    section_id: str | None = None


@dataclass(frozen=True, slots=True)
class ProductRef:
    catalog_id: Any
    quantity: str = "1"
    name: str = ""
    sections: tuple[SectionSelection, ...] = ()

    # Some cart flows store the selected sub-items flat, without sections.
    items: tuple[SelectedSubItem, ...] = ()

    @classmethod
    def from_payload(cls, payload: Any) -> "ProductRef":
        if not isinstance(payload, dict):
            raise MalformedCartError(f"Product reference must be an object, got {type(payload).__name__}")

        sections = tuple(
            SectionSelection(
                items=_sub_items(section.get("items")),
                section_id=_text(section.get("sectionId") or section.get("id")) or None,
            )
            for section in payload.get("sections") or []
            if isinstance(section, dict)
        )

        return cls(
            catalog_id=payload.get("oldId"),
            quantity=_text(payload.get("qty")) or "1",
            name=_text(payload.get("name")),
            sections=sections,
            items=_sub_items(payload.get("items")),
        )

    def selected_sub_items(self) -> list[SelectedSubItem]:
        return [item for section in self.sections for item in section.items]


@dataclass(frozen=True, slots=True)
class CartEntry:
    id: str
    owner: CartOwner
    product: Any
    source: str | None = None

    def product_payloads(self) -> list[Any]:
        # A composite cart row stores several products bought together.
        if isinstance(self.product, list):
            return list(self.product)
        return [self.product]


@dataclass(frozen=True, slots=True)
class CatalogProduct:
    product_id: int
    price: Decimal
    kind: ProductKind = ProductKind.INDIVIDUAL
    plu: int | None = None
    core_name: str | None = None
    name: str | None = None

    def code(self) -> str:
        return str(self.plu) if self.plu is not None else str(self.product_id)

    def description_for(self, cart_name: str) -> str:
        return self.core_name or self.name or cart_name


@dataclass(frozen=True, slots=True)
class SubItem:
    id: str
    price: Decimal
    plu: int | None = None
    description: str | None = None
    group: str | None = None

    def code(self) -> str:
        return str(self.plu) if self.plu is not None else ""


class CartSource(Protocol):
    def fetch_cart(self, owner: CartOwner) -> list[CartEntry]: ...


class CatalogSource(Protocol):
    def resolve_product(self, product_id: int) -> CatalogProduct | None: ...

    def resolve_sub_items(self, ids: Sequence[str]) -> list[SubItem]: ...


class OrderStore(Protocol):
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
    ) -> str: ...


def parse_catalog_id(raw: Any) -> int | None:
    """Return the numeric catalog identifier, or None when it is missing or not numeric."""

    if raw is None or isinstance(raw, bool):
        return None
    text = str(raw).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    return int(number) if number.is_integer() else None


def parse_quantity(raw: str | None) -> int:
    text = (raw or "").strip()
    if not text:
        return 1
    try:
        return int(text)
    except ValueError as e:
        raise MalformedCartError(f"Quantity is not an integer: {raw!r}") from e


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _sub_items(raw: Any) -> tuple[SelectedSubItem, ...]:
    if not isinstance(raw, list):
        return ()
    out: list[SelectedSubItem] = []
    for it in raw:
        if not isinstance(it, dict) or not it.get("id"):
            continue
        out.append(
            SelectedSubItem(
                id=str(it["id"]),
                quantity=_text(it.get("qty")),
                role=_text(it.get("type")) or None,
            )
        )
    return tuple(out)