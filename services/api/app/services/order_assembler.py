from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

import structlog
from packages.shared.schemas.order_document import OrderLineV1
from services.api.app.services.catalog_base import (
    CartEntry,
    MalformedCartError,
    ProductRef,
    parse_catalog_id,
)
from services.api.app.services.line_items import LineItemBuilder
from services.api.app.services.order_errors import NoOrderLinesError
from services.api.app.services.order_utils import sum_amounts

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class AssembledOrder:
    lines: list[OrderLineV1]
    total: Decimal


def calculate_total(lines: Iterable[OrderLineV1]) -> Decimal:
    return sum_amounts([line.amount for line in lines])


class OrderAssembler:
    def __init__(self, builder: LineItemBuilder) -> None:
        self._builder = builder

    def assemble(
        self, owner_id: str, entries: list[CartEntry], cluster: str | None = None
    ) -> AssembledOrder:
        """Build every line of the order, numbering them 1..n across all cart entries."""

        log = logger.bind(owner_id=owner_id)
        log.info("Assembling order lines", entries=len(entries), cluster=cluster)

        lines: list[OrderLineV1] = []
        next_line = 1

        for entry in entries:
            payloads = entry.product_payloads()
            if isinstance(entry.product, list):
                log.info("Composite cart entry", cart_entry_id=entry.id, products=len(payloads))

            for payload in payloads:
                ref = _product_ref(entry, payload)
                if ref is None:
                    continue

                built = self._builder.build(entry, ref, next_line, cluster)
                lines.extend(built)
                next_line += len(built)

        if not lines:
            raise NoOrderLinesError(len(entries))

        total = calculate_total(lines)
        log.info("Order lines assembled", lines=len(lines), total=str(total))
        return AssembledOrder(lines=lines, total=total)


def _product_ref(entry: CartEntry, payload: object) -> ProductRef | None:
    try:
        ref = ProductRef.from_payload(payload)
    except MalformedCartError as e:
        logger.warning("Skipping malformed product reference", cart_entry_id=entry.id, reason=str(e))
        return None

    if parse_catalog_id(ref.catalog_id) is None:
        logger.warning(
            "Skipping product reference without a numeric catalog id",
            cart_entry_id=entry.id,
            catalog_id=ref.catalog_id,
        )
        return None

    return ref
