import pytest
from services.api.app.services.intake_factory import get_intake_client
from services.api.app.services.intake_http import HttpIntakeClient
from services.api.app.services.pricing_db import ProcedurePricingSource
from services.api.app.services.pricing_factory import get_pricing_source
from services.api.app.services.pricing_mock import StaticPricingSource


def test_get_intake_client_defaults_to_mock(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ORDERBRIDGE_INTAKE_CLIENT", raising=False)
    client = get_intake_client()
    assert client.name == "MOCK"


def test_get_intake_client_http(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ORDERBRIDGE_INTAKE_CLIENT", "HTTP")
    monkeypatch.setenv("ORDERBRIDGE_INTAKE_URL", "http://intake.test/api2023")
    monkeypatch.setenv("ORDERBRIDGE_INTAKE_KEY", "s3cret")

    client = get_intake_client()

    assert isinstance(client, HttpIntakeClient)
    assert client.url == "http://intake.test/api2023/comanda"


def test_get_intake_client_rejects_unknown(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ORDERBRIDGE_INTAKE_CLIENT", "nope")
    with pytest.raises(ValueError, match="Unknown ORDERBRIDGE_INTAKE_CLIENT"):
        get_intake_client()


def test_get_pricing_source_defaults_to_static(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ORDERBRIDGE_PRICING_SOURCE", raising=False)
    assert isinstance(get_pricing_source(db=None), StaticPricingSource)


def test_get_pricing_source_procedure(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ORDERBRIDGE_PRICING_SOURCE", "procedure")
    assert isinstance(get_pricing_source(db=None), ProcedurePricingSource)


def test_get_pricing_source_rejects_unknown(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ORDERBRIDGE_PRICING_SOURCE", "nope")
    with pytest.raises(ValueError, match="Unknown ORDERBRIDGE_PRICING_SOURCE"):
        get_pricing_source(db=None)
