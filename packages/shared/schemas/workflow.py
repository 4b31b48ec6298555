"""Shared workflow status schema (v1).

Every order submission attempt is tracked by one workflow record. Clients can read these
records to render the submission history of an order.
"""

from __future__ import annotations

from enum import Enum


class WorkflowStatusV1(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


# success and error are terminal.
ALLOWED_TRANSITIONS: dict[WorkflowStatusV1, frozenset[WorkflowStatusV1]] = {
    WorkflowStatusV1.PENDING: frozenset({WorkflowStatusV1.SUCCESS, WorkflowStatusV1.ERROR}),
    WorkflowStatusV1.SUCCESS: frozenset(),
    WorkflowStatusV1.ERROR: frozenset(),
}


def can_transition(current: WorkflowStatusV1, target: WorkflowStatusV1) -> bool:
    return target in ALLOWED_TRANSITIONS[current]
