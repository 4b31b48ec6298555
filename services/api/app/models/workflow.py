from __future__ import annotations

from pydantic import BaseModel, Field


class WorkflowListItem(BaseModel):
    workflow_id: str
    order_number: str
    tag: str
    status: str
    sent: bool
    total: str | None = None
    channel: str | None = None
    created_at: str
    updated_at: str


class WorkflowDetail(BaseModel):
    workflow_id: str
    user_id: int | None = None
    session_id: str | None = None

    order_number: str
    tag: str
    restaurant: str | None = None
    total: str | None = None
    sale_channel: str | None = None
    channel: str | None = None

    status: str
    sent: bool
    error_message: str | None = None

    order_json: dict = Field(default_factory=dict)
    intake_response: dict | None = None

    created_at: str
    updated_at: str
