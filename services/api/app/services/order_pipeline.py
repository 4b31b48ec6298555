from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import structlog
from packages.shared.schemas.order_document import OrderDocumentV1
from packages.shared.schemas.workflow import WorkflowStatusV1
from services.api.app.models.order import CreateOrderFromCartRequest
from services.api.app.services.catalog_base import CartOwner, CartSource, OrderStore
from services.api.app.services.discount_resolver import DiscountResolver
from services.api.app.services.intake_base import IntakeClient
from services.api.app.services.intake_factory import get_intake_client
from services.api.app.services.line_items import LineItemBuilder
from services.api.app.services.order_assembler import OrderAssembler
from services.api.app.services.order_errors import (
    EmptyCartError,
    OrderPersistenceError,
    SubmissionFailedError,
)
from services.api.app.services.order_utils import (
    format_amount,
    format_date,
    format_time,
    generate_order_tag,
)
from services.api.app.services.pricing_factory import get_pricing_source
from services.api.app.services.store_db import DbCartSource, DbCatalogSource, DbOrderStore
from services.api.app.services.workflow_recorder import WorkflowRecorder
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = structlog.get_logger(__name__)

DEFAULT_CHANNEL = "WEB"
DEFAULT_NIT = "CF"
DEFAULT_NIT_NAME = "CONSUMIDOR FINAL"
DEFAULT_COORDINATES = "14.59916353464088,-90.57646230799594"


@dataclass(frozen=True, slots=True)
class PipelineResult:
    workflow_id: str
    document: OrderDocumentV1
    response: dict[str, Any]


class OrderPipeline:
    """Cart -> priced order -> pending workflow record -> intake -> reconciled record.

    The workflow record is written before the intake call and updated after it. Any failure once
    the record exists moves it to ``error`` before the failure is raised.
    """

    def __init__(
        self,
        *,
        carts: CartSource,
        assembler: OrderAssembler,
        orders: OrderStore,
        recorder: WorkflowRecorder,
        intake: IntakeClient,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._carts = carts
        self._assembler = assembler
        self._orders = orders
        self._recorder = recorder
        self._intake = intake
        self._clock = clock

    @classmethod
    def from_session(cls, db: Session) -> "OrderPipeline":
        catalog = DbCatalogSource(db)
        resolver = DiscountResolver(get_pricing_source(db))
        return cls(
            carts=DbCartSource(db),
            assembler=OrderAssembler(LineItemBuilder(catalog, resolver)),
            orders=DbOrderStore(db),
            recorder=WorkflowRecorder(db),
            intake=get_intake_client(),
        )

    def create_order_from_cart(self, request: CreateOrderFromCartRequest) -> PipelineResult:
        owner = CartOwner(user_id=request.user_id, session_id=request.session_id)
        owner_id = str(owner.user_id) if owner.user_id is not None else str(owner.session_id)
        log = logger.bind(owner_id=owner_id)
        log.info("Creating order from cart", cluster=request.cluster)

        entries = self._carts.fetch_cart(owner)
        if not entries:
            raise EmptyCartError(owner_id)

        assembled = self._assembler.assemble(owner_id, entries, request.cluster)

        now = self._clock()
        tag = generate_order_tag()
        total = format_amount(assembled.total)
        sale_channel = request.sale_channel or DEFAULT_CHANNEL
        channel = request.channel or DEFAULT_CHANNEL
        nit = request.nit or DEFAULT_NIT
        nit_name = request.nit_name or DEFAULT_NIT_NAME
        observations = request.observations or ""

        try:
            order_number = self._orders.insert_order(
                owner=owner,
                contact_name=request.customer_name,
                contact_phone=request.customer_phone,
                invoice_name=nit_name,
                invoice_nit=nit,
                delivery_address=request.customer_address,
                restaurant=request.restaurant,
                total=assembled.total,
                lines=[
                    line.model_dump(mode="json", by_alias=True, exclude_none=True)
                    for line in assembled.lines
                ],
                observations=observations,
                channel=request.channel or request.sale_channel or DEFAULT_CHANNEL,
                created_at=now,
            )
        except SQLAlchemyError as e:
            raise OrderPersistenceError(f"Could not insert the order record: {e}") from e

        document = OrderDocumentV1(
            sale_channel=sale_channel,
            order_number=order_number,
            tag=tag,
            date=format_date(now),
            time=format_time(now),
            restaurant=request.restaurant,
            customer_phone=request.customer_phone,
            customer_name=request.customer_name,
            customer_address=request.customer_address,
            nit=nit,
            nit_name=nit_name,
            cash_total=total,
            credit_total="0",
            total=total,
            observations=observations,
            lines=assembled.lines,
            line_count=str(len(assembled.lines)),
            channel=channel,
            coordinates=_coordinates(request.coordinates),
        )
        log = log.bind(order_number=order_number, tag=tag)
        log.info("Order document built", total=total, lines=len(assembled.lines))

        workflow_id: str | None = None
        try:
            workflow_id = self._recorder.record_pending(owner, document).id

            result = self._intake.submit(document)
            if not result.ok:
                reason = result.error_message or "Unknown intake error"
                self._recorder.record_outcome(
                    workflow_id, WorkflowStatusV1.ERROR, error_message=reason
                )
                log.error("Order rejected by intake", workflow_id=workflow_id, error=reason)
                raise SubmissionFailedError(reason, workflow_id)

            self._recorder.record_outcome(
                workflow_id, WorkflowStatusV1.SUCCESS, response=result.payload
            )
        except SubmissionFailedError:
            raise
        except Exception as e:
            self._record_failure(owner, document, workflow_id, e)
            raise

        log.info("Order accepted by intake", workflow_id=workflow_id)
        return PipelineResult(
            workflow_id=workflow_id,
            document=document,
            response=result.payload or {},
        )

    def _record_failure(
        self,
        owner: CartOwner,
        document: OrderDocumentV1,
        workflow_id: str | None,
        error: Exception,
    ) -> None:
        message = str(error) or type(error).__name__
        try:
            if workflow_id is None:
                self._recorder.record_error(owner, document, message)
            else:
                self._recorder.record_outcome(
                    workflow_id, WorkflowStatusV1.ERROR, error_message=message
                )
        except Exception:
            logger.exception(
                "Could not record order failure",
                order_number=document.order_number,
                workflow_id=workflow_id,
                original_error=message,
            )


def _coordinates(raw: str | None) -> str:
    value = (raw or "").strip()
    if value:
        return value
    return os.getenv("ORDERBRIDGE_DEFAULT_COORDINATES", DEFAULT_COORDINATES)
