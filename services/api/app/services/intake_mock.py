from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from packages.shared.schemas.order_document import OrderDocumentV1
from services.api.app.services.intake_base import (
    INTAKE_ACK,
    SubmissionResult,
    as_document_list,
    classify_response,
)


class MockIntakeClient:
    """Acknowledges every submission unless given another response body to answer with."""

    name = "MOCK"

    def __init__(self, response: Any = None) -> None:
        self._response = response
        self.submitted: list[list[OrderDocumentV1]] = []

    def submit(
        self, documents: OrderDocumentV1 | Sequence[OrderDocumentV1]
    ) -> SubmissionResult:
        orders = as_document_list(documents)
        self.submitted.append(orders)

        body = self._response
        if body is None:
            body = {"success": True, "data": {"exito": INTAKE_ACK}}
        return classify_response(body, 200)
