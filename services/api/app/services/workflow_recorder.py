"""Durable record of each order submission attempt.

A record is inserted as ``pending`` before the order is sent to the intake system and moved to
``success`` or ``error`` afterwards. The two writes are not atomic with the submission: a crash
in between leaves a ``pending`` record, which means the intake system must be assumed not to have
received the order. Sweeping such records is left to operations.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import uuid4

import structlog
from packages.shared.schemas.order_document import OrderDocumentV1
from packages.shared.schemas.workflow import WorkflowStatusV1, can_transition
from services.api.app.db.models import OrderWorkflow
from services.api.app.services.catalog_base import CartOwner
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = structlog.get_logger(__name__)


class WorkflowError(Exception):
    """Base class for workflow record errors."""


class WorkflowNotFoundError(WorkflowError):
    def __init__(self, workflow_id: str) -> None:
        super().__init__(f"Workflow record not found: {workflow_id}")
        self.workflow_id = workflow_id


class InvalidWorkflowTransitionError(WorkflowError):
    def __init__(self, workflow_id: str, current: str, target: str) -> None:
        super().__init__(
            f"Workflow record {workflow_id} cannot move from {current!r} to {target!r}"
        )
        self.workflow_id = workflow_id
        self.current = current
        self.target = target


class WorkflowRecorder:
    def __init__(self, db: Session) -> None:
        self._db = db

    def record_pending(self, owner: CartOwner, document: OrderDocumentV1) -> OrderWorkflow:
        now = datetime.utcnow()
        record = OrderWorkflow(
            id=uuid4().hex,
            user_id=owner.user_id,
            session_id=owner.session_id,
            order_number=document.order_number,
            tag=document.tag,
            restaurant=document.restaurant,
            total=document.total,
            sale_channel=document.sale_channel,
            channel=document.channel,
            order_json=document.to_wire(),
            intake_response=None,
            status=WorkflowStatusV1.PENDING.value,
            error_message=None,
            sent=False,
            created_at=now,
            updated_at=now,
        )
        self._db.add(record)
        self._commit()

        logger.info(
            "Workflow record created",
            workflow_id=record.id,
            order_number=record.order_number,
            status=record.status,
        )
        return record

    def record_outcome(
        self,
        workflow_id: str,
        status: WorkflowStatusV1,
        response: dict[str, Any] | None = None,
        error_message: str | None = None,
    ) -> OrderWorkflow:
        status = WorkflowStatusV1(status)
        record = self._db.get(OrderWorkflow, workflow_id)
        if record is None:
            raise WorkflowNotFoundError(workflow_id)

        current = WorkflowStatusV1(record.status)
        if not can_transition(current, status):
            raise InvalidWorkflowTransitionError(workflow_id, current.value, status.value)

        if status is WorkflowStatusV1.SUCCESS:
            record.intake_response = response
            record.sent = True
            record.error_message = None
        else:
            record.intake_response = None
            record.sent = False
            record.error_message = error_message or "Unknown error"

        record.status = status.value
        record.updated_at = datetime.utcnow()
        self._commit()

        logger.info(
            "Workflow record transitioned",
            workflow_id=workflow_id,
            from_status=current.value,
            to_status=status.value,
            error_message=record.error_message,
        )
        return record

    def record_error(
        self, owner: CartOwner, document: OrderDocumentV1, message: str
    ) -> OrderWorkflow:
        """Insert a record and move it straight to ``error``.

        If the second write fails it is logged and the ``pending`` record is returned, so the
        caller can keep reporting the error it was recording.
        """

        record = self.record_pending(owner, document)
        workflow_id = record.id
        try:
            return self.record_outcome(workflow_id, WorkflowStatusV1.ERROR, error_message=message)
        except (SQLAlchemyError, WorkflowError):
            logger.exception(
                "Could not mark workflow record as error",
                workflow_id=workflow_id,
                error_message=message,
            )
            return record

    def _commit(self) -> None:
        try:
            self._db.commit()
        except SQLAlchemyError:
            self._db.rollback()
            raise
