from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from services.api.app.db.deps import get_db
from services.api.app.db.models import OrderWorkflow
from services.api.app.models.workflow import WorkflowDetail, WorkflowListItem
from sqlalchemy.orm import Session

router = APIRouter()


@router.get("/v1/workflows", response_model=list[WorkflowListItem])
def list_workflows(user_id: int, db: Session = Depends(get_db)) -> list[WorkflowListItem]:
    rows = (
        db.query(OrderWorkflow)
        .filter(OrderWorkflow.user_id == user_id)
        .order_by(OrderWorkflow.created_at.desc())
        .limit(200)
        .all()
    )

    return [
        WorkflowListItem(
            workflow_id=w.id,
            order_number=w.order_number,
            tag=w.tag,
            status=w.status,
            sent=w.sent,
            total=w.total,
            channel=w.channel,
            created_at=w.created_at.isoformat(),
            updated_at=w.updated_at.isoformat(),
        )
        for w in rows
    ]


@router.get("/v1/workflows/{workflow_id}", response_model=WorkflowDetail)
def get_workflow(workflow_id: str, db: Session = Depends(get_db)) -> WorkflowDetail:
    w = db.get(OrderWorkflow, workflow_id)
    if w is None:
        raise HTTPException(status_code=404, detail="Workflow record not found")

    return WorkflowDetail(
        workflow_id=w.id,
        user_id=w.user_id,
        session_id=w.session_id,
        order_number=w.order_number,
        tag=w.tag,
        restaurant=w.restaurant,
        total=w.total,
        sale_channel=w.sale_channel,
        channel=w.channel,
        status=w.status,
        sent=w.sent,
        error_message=w.error_message,
        order_json=w.order_json or {},
        intake_response=w.intake_response,
        created_at=w.created_at.isoformat(),
        updated_at=w.updated_at.isoformat(),
    )
