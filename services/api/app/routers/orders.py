from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from services.api.app.db.deps import get_db
from services.api.app.models.order import CreateOrderFromCartRequest, CreateOrderFromCartResponse
from services.api.app.services.intake_base import IntakeConfigError
from services.api.app.services.order_errors import (
    EmptyCartError,
    NoOrderLinesError,
    OrderPipelineError,
    SubmissionFailedError,
)
from services.api.app.services.order_pipeline import OrderPipeline
from sqlalchemy.orm import Session

logger = structlog.get_logger(__name__)

router = APIRouter()


def get_order_pipeline(db: Session = Depends(get_db)) -> OrderPipeline:
    try:
        return OrderPipeline.from_session(db)
    except (ValueError, IntakeConfigError) as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


def _raise_pipeline_http_error(e: Exception) -> None:
    if isinstance(e, EmptyCartError):
        raise HTTPException(status_code=404, detail=str(e)) from e

    if isinstance(e, NoOrderLinesError):
        raise HTTPException(status_code=422, detail=str(e)) from e

    if isinstance(e, SubmissionFailedError):
        raise HTTPException(status_code=502, detail=str(e)) from e

    if isinstance(e, OrderPipelineError):
        raise HTTPException(status_code=400, detail=str(e)) from e

    logger.error("Unexpected error creating order", error=str(e), error_type=type(e).__name__)
    raise HTTPException(status_code=500, detail="Internal Server Error") from e


@router.post("/v1/orders/from-cart", response_model=CreateOrderFromCartResponse)
def create_order_from_cart(
    payload: CreateOrderFromCartRequest,
    pipeline: OrderPipeline = Depends(get_order_pipeline),
) -> CreateOrderFromCartResponse:
    try:
        result = pipeline.create_order_from_cart(payload)
    except Exception as e:
        _raise_pipeline_http_error(e)

    return CreateOrderFromCartResponse(
        workflow_id=result.workflow_id,
        order=result.document.to_wire(),
        intake_response=result.response,
    )
