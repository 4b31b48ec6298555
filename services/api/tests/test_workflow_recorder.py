from __future__ import annotations

from pathlib import Path

import pytest
from packages.shared.schemas.order_document import OrderDocumentV1, OrderLineV1
from packages.shared.schemas.workflow import WorkflowStatusV1, can_transition
from services.api.app.db.models import OrderWorkflow
from services.api.app.services.catalog_base import CartOwner
from services.api.app.services.workflow_recorder import (
    InvalidWorkflowTransitionError,
    WorkflowNotFoundError,
    WorkflowRecorder,
)
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from structlog.testing import capture_logs


@pytest.fixture()
def db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Session:
    db_path = tmp_path / "orderbridge_workflows.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{db_path}")
    monkeypatch.setenv("ORDERBRIDGE_DB_AUTO_CREATE", "true")

    from services.api.app.db.database import db_session
    from services.api.app.db.init_db import init_db

    init_db()
    session = db_session()
    try:
        yield session
    finally:
        session.close()


def _document(order_number: str = "1001") -> OrderDocumentV1:
    return OrderDocumentV1(
        sale_channel="WEB",
        order_number=order_number,
        tag="AbC123",
        date="05/03/2024",
        time="13:45:09",
        restaurant="12",
        customer_phone="5555-1234",
        customer_name="Ana",
        customer_address="Zona 10",
        nit="CF",
        nit_name="CONSUMIDOR FINAL",
        cash_total="25.00",
        total="25.00",
        observations="",
        lines=[
            OrderLineV1(line_number=1, code="5101", quantity=2, description="HAMBURGUESA", amount="25.00")
        ],
        line_count="1",
        channel="WEB",
        coordinates="14.6,-90.5",
    )


def test_transition_table() -> None:
    assert can_transition(WorkflowStatusV1.PENDING, WorkflowStatusV1.SUCCESS)
    assert can_transition(WorkflowStatusV1.PENDING, WorkflowStatusV1.ERROR)
    assert not can_transition(WorkflowStatusV1.SUCCESS, WorkflowStatusV1.ERROR)
    assert not can_transition(WorkflowStatusV1.ERROR, WorkflowStatusV1.SUCCESS)
    assert not can_transition(WorkflowStatusV1.SUCCESS, WorkflowStatusV1.PENDING)


def test_record_pending_stores_wire_document(db: Session) -> None:
    recorder = WorkflowRecorder(db)
    record = recorder.record_pending(CartOwner(user_id=3), _document())

    stored = db.get(OrderWorkflow, record.id)
    assert stored is not None
    assert stored.status == "pending"
    assert stored.sent is False
    assert stored.intake_response is None
    assert stored.order_json["orden"] == "1001"
    assert stored.order_json["detalle"][0]["monto"] == "25.00"
    assert stored.user_id == 3


def test_success_stores_response(db: Session) -> None:
    recorder = WorkflowRecorder(db)
    record = recorder.record_pending(CartOwner(user_id=3), _document())
    response = {"success": True, "data": {"exito": "Orden Recibida en Servidor"}}

    updated = recorder.record_outcome(record.id, WorkflowStatusV1.SUCCESS, response=response)

    assert updated.status == "success"
    assert updated.sent is True
    assert updated.intake_response == response
    assert updated.error_message is None


def test_error_stores_message_without_response(db: Session) -> None:
    recorder = WorkflowRecorder(db)
    record = recorder.record_pending(CartOwner(session_id="sess-1"), _document())

    updated = recorder.record_outcome(record.id, "error", error_message="intake down")

    assert updated.status == "error"
    assert updated.sent is False
    assert updated.intake_response is None
    assert updated.error_message == "intake down"
    assert updated.session_id == "sess-1"


def test_terminal_records_cannot_transition(db: Session) -> None:
    recorder = WorkflowRecorder(db)
    record = recorder.record_pending(CartOwner(user_id=3), _document())
    recorder.record_outcome(record.id, WorkflowStatusV1.SUCCESS, response={"success": True})

    with pytest.raises(InvalidWorkflowTransitionError):
        recorder.record_outcome(record.id, WorkflowStatusV1.ERROR, error_message="late failure")

    assert db.get(OrderWorkflow, record.id).status == "success"


def test_unknown_record_raises(db: Session) -> None:
    with pytest.raises(WorkflowNotFoundError):
        WorkflowRecorder(db).record_outcome("missing", WorkflowStatusV1.ERROR)


def test_record_error_creates_error_record(db: Session) -> None:
    record = WorkflowRecorder(db).record_error(CartOwner(user_id=3), _document(), "boom")

    assert record.status == "error"
    assert record.error_message == "boom"
    assert db.query(OrderWorkflow).count() == 1


def test_record_error_keeps_pending_record_when_transition_fails(
    db: Session, monkeypatch: pytest.MonkeyPatch
) -> None:
    recorder = WorkflowRecorder(db)

    def failing_outcome(*args, **kwargs):
        raise OperationalError("UPDATE order_workflows", {}, Exception("database is locked"))

    monkeypatch.setattr(recorder, "record_outcome", failing_outcome)

    with capture_logs() as logs:
        record = recorder.record_error(CartOwner(user_id=3), _document(), "intake down")

    assert record.status == "pending"
    assert db.get(OrderWorkflow, record.id).status == "pending"
    [event] = [entry for entry in logs if entry["event"] == "Could not mark workflow record as error"]
    assert event["log_level"] == "error"
    assert event["workflow_id"] == record.id
    assert event["error_message"] == "intake down"
