from __future__ import annotations

import http.client
import json
import os
import urllib.error
import urllib.request
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import structlog
from packages.shared.schemas.order_document import OrderDocumentV1
from services.api.app.services.intake_base import (
    IntakeConfigError,
    SubmissionResult,
    as_document_list,
    channel_for,
    classify_response,
    transport_error_message,
)

logger = structlog.get_logger(__name__)

SUBMIT_PATH = "comanda"
DEFAULT_TIMEOUT_S = 30.0


@dataclass(frozen=True, slots=True)
class _IntakeConfig:
    base_url: str
    shared_key: str
    timeout_s: float


class HttpIntakeClient:
    """Sends orders to the intake system's ``comanda`` endpoint.

    Env vars:
    - ORDERBRIDGE_INTAKE_CLIENT=http
    - ORDERBRIDGE_INTAKE_URL (required, e.g. http://intake.internal:4001/api2023/)
    - ORDERBRIDGE_INTAKE_KEY (required, shared secret sent as the Key header)
    - ORDERBRIDGE_INTAKE_TIMEOUT_S (default: 30)
    """

    name = "HTTP"

    def __init__(self, cfg: _IntakeConfig) -> None:
        self._cfg = cfg

    @classmethod
    def from_env(cls) -> "HttpIntakeClient":
        base_url = os.getenv("ORDERBRIDGE_INTAKE_URL", "").strip()
        if not base_url:
            raise IntakeConfigError("ORDERBRIDGE_INTAKE_URL")

        shared_key = os.getenv("ORDERBRIDGE_INTAKE_KEY", "")
        if not shared_key:
            raise IntakeConfigError("ORDERBRIDGE_INTAKE_KEY")

        timeout_s = float(os.getenv("ORDERBRIDGE_INTAKE_TIMEOUT_S", str(DEFAULT_TIMEOUT_S)))
        return cls(_IntakeConfig(base_url=base_url, shared_key=shared_key, timeout_s=timeout_s))

    @property
    def url(self) -> str:
        return self._cfg.base_url.rstrip("/") + "/" + SUBMIT_PATH

    def headers(self, channel: str) -> dict[str, str]:
        return {
            "Key": self._cfg.shared_key,
            "FV": channel,
            "Content-Type": "application/json",
        }

    def submit(
        self, documents: OrderDocumentV1 | Sequence[OrderDocumentV1]
    ) -> SubmissionResult:
        orders = as_document_list(documents)
        channel = channel_for(orders)
        body = json.dumps([o.to_wire() for o in orders]).encode("utf-8")

        log = logger.bind(
            url=self.url,
            channel=channel,
            order_numbers=[o.order_number for o in orders],
        )
        log.info("Submitting orders to intake")

        req = urllib.request.Request(self.url, data=body, method="POST")
        for key, value in self.headers(channel).items():
            req.add_header(key, value)

        try:
            with urllib.request.urlopen(req, timeout=self._cfg.timeout_s) as resp:
                status = resp.status
                raw = resp.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as e:
            remote = _parse_json(e.read().decode("utf-8", errors="replace"))
            message = transport_error_message(remote, str(e))
            log.error("Intake rejected request", status=e.code, error=message)
            return SubmissionResult(
                ok=False,
                payload=remote if isinstance(remote, dict) else None,
                error_message=message,
                status_code=e.code,
            )
        except urllib.error.URLError as e:
            message = str(e.reason)
            log.error("Intake unreachable", error=message)
            return SubmissionResult(ok=False, error_message=message)
        except TimeoutError as e:
            message = str(e) or "timed out"
            log.error("Intake request timed out", error=message)
            return SubmissionResult(ok=False, error_message=message)
        except (http.client.HTTPException, OSError) as e:
            # Raised from getresponse() or read(); urlopen does not wrap these in URLError.
            message = str(e) or type(e).__name__
            log.error("Intake connection failed", error=message, error_type=type(e).__name__)
            return SubmissionResult(ok=False, error_message=message)

        if not 200 <= status < 300:
            message = f"Intake returned HTTP {status}"
            log.error("Intake returned a non-2xx status", status=status)
            return SubmissionResult(ok=False, error_message=message, status_code=status)

        result = classify_response(_parse_json(raw), status)
        if result.ok:
            log.info("Intake acknowledged orders", status=status)
        else:
            log.warning("Intake did not acknowledge orders", status=status, error=result.error_message)
        return result


def _parse_json(raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError:
        return None
