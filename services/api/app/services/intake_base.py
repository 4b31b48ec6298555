from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from packages.shared.schemas.order_document import OrderDocumentV1

# Literal acknowledgement the intake system returns when it accepted the orders.
INTAKE_ACK = "Orden Recibida en Servidor"
DEFAULT_CHANNEL = "APP"


class IntakeError(Exception):
    """Base class for intake client errors."""


class IntakeConfigError(IntakeError):
    def __init__(self, env_var: str) -> None:
        super().__init__(f"{env_var} is required when ORDERBRIDGE_INTAKE_CLIENT=http")
        self.env_var = env_var


@dataclass(frozen=True, slots=True)
class SubmissionResult:
    """Outcome of one submission. Remote rejections and transport failures both give ok=False."""

    ok: bool
    payload: dict[str, Any] | None = None
    error_message: str | None = None
    status_code: int | None = None


class IntakeClient(Protocol):
    name: str

    def submit(
        self, documents: OrderDocumentV1 | Sequence[OrderDocumentV1]
    ) -> SubmissionResult: ...


def as_document_list(
    documents: OrderDocumentV1 | Sequence[OrderDocumentV1],
) -> list[OrderDocumentV1]:
    if isinstance(documents, OrderDocumentV1):
        return [documents]
    return list(documents)


def channel_for(documents: Sequence[OrderDocumentV1]) -> str:
    if not documents:
        return DEFAULT_CHANNEL
    first = documents[0]
    return (first.channel or first.sale_channel or DEFAULT_CHANNEL).upper()


def classify_response(payload: Any, status_code: int | None = None) -> SubmissionResult:
    """Accept only ``{"success": true, "data": {"exito": INTAKE_ACK}}``."""

    if not isinstance(payload, dict):
        return SubmissionResult(
            ok=False,
            payload=None,
            error_message="Intake response invalid or incomplete",
            status_code=status_code,
        )

    data = payload.get("data")
    ack = data.get("exito") if isinstance(data, dict) else None

    if payload.get("success") is True and ack == INTAKE_ACK:
        return SubmissionResult(ok=True, payload=payload, status_code=status_code)

    if payload.get("error"):
        message = str(payload["error"])
    elif ack:
        message = f"Intake response not successful: {ack}"
    else:
        message = "Intake response invalid or incomplete"

    return SubmissionResult(
        ok=False, payload=payload, error_message=message, status_code=status_code
    )


def transport_error_message(body: Any, fallback: str) -> str:
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return fallback
