from __future__ import annotations

import os

from services.api.app.services.intake_base import IntakeClient
from services.api.app.services.intake_mock import MockIntakeClient


def get_intake_client() -> IntakeClient:
    """Select the intake client based on env vars.

    Defaults to the mock client so tests and local dev never reach the real intake system.
    """

    mode = os.getenv("ORDERBRIDGE_INTAKE_CLIENT", "mock").strip().lower()

    if mode == "mock":
        return MockIntakeClient()

    if mode == "http":
        from services.api.app.services.intake_http import HttpIntakeClient

        return HttpIntakeClient.from_env()

    raise ValueError(f"Unknown ORDERBRIDGE_INTAKE_CLIENT={mode!r}. Expected mock or http.")
