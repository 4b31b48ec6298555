from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator


class CreateOrderFromCartRequest(BaseModel):
    user_id: int | None = None
    session_id: str | None = None

    restaurant: str
    customer_phone: str
    customer_name: str
    customer_address: str

    nit: str | None = None
    nit_name: str | None = None
    observations: str | None = None

    # "lat,lng". Blank uses ORDERBRIDGE_DEFAULT_COORDINATES.
    coordinates: str | None = None

    sale_channel: Literal["APP", "WEB"] | None = None
    channel: Literal["APP", "WEB"] | None = None

    # Pricing region, e.g. "03". Selects CLUSTER03 discounts over DELIVERY ones.
    cluster: str | None = None

    @model_validator(mode="after")
    def _require_owner(self) -> "CreateOrderFromCartRequest":
        if self.user_id is None and not (self.session_id or "").strip():
            raise ValueError("user_id or session_id is required")
        return self


class CreateOrderFromCartResponse(BaseModel):
    workflow_id: str
    order: dict[str, Any]
    intake_response: dict[str, Any] = Field(default_factory=dict)
