"""Shared order document schema (v1).

This is the payload accepted by the order intake system. Attribute names are English;
aliases carry the intake system's field names and are what goes over the wire.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class LineKindV1(str, Enum):
    NORMAL = "NORMAL"
    MIXTO = "MIXTO"


class BlendComponentV1(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    role: str = Field(..., alias="mixto_opcion")
    quantity: str = Field("", alias="mixto_cantidad")
    code: str = Field("", alias="mixto_plu")
    description: str = Field(..., alias="mixto_descripcion")


class OrderLineV1(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    line_number: int = Field(..., ge=1, alias="linea_detalle")
    code: str = Field(..., alias="plu")
    quantity: int = Field(..., alias="cantidad")
    description: str = Field(..., alias="descripcion")

    # Two-decimal fixed string, e.g. "12.50".
    amount: str = Field(..., alias="monto")

    kind: LineKindV1 = Field(LineKindV1.NORMAL, alias="tipo")
    modifiers: str = Field("N", alias="modificadores")
    blend_components: list[BlendComponentV1] = Field(
        default_factory=list, alias="mixto_opciones"
    )
    source: str = "menu"

    # Only MIXTO lines carry this (always empty).
    modifier_options: list[dict[str, Any]] | None = Field(None, alias="modificadores_opciones")

    @field_serializer("line_number", "quantity")
    def _as_text(self, value: int) -> str:
        return str(value)


class PaymentGatewayV1(BaseModel):
    """Card payment block. Orders built from carts are cash orders, so it stays blank."""

    visanet_total: str = ""
    visanet_system_trace: str = ""
    visanet_hora: str = ""
    visanet_fecha: str = ""
    visanet_reference_number: str = ""
    visanet_authidresponse: str = ""
    visanet_terminal: str = ""
    visanet_nombre: str = ""
    visanet_tarjeta: str = ""
    visanet_vencimiento: str = ""


class OrderDocumentV1(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sale_channel: str = Field("WEB", alias="forma_venta")
    order_number: str = Field(..., alias="orden")
    tag: str
    date: str = Field(..., alias="fecha")
    time: str = Field(..., alias="hora")
    restaurant: str = Field(..., alias="restaurante")

    customer_phone: str = Field(..., alias="cliente_telefono")
    customer_name: str = Field(..., alias="cliente_nombre")
    customer_address: str = Field(..., alias="cliente_direccion")

    nit: str = "CF"
    nit_name: str = Field("CONSUMIDOR FINAL", alias="nit_nombre")

    cash_total: str = Field(..., alias="total_efectivo")
    credit_total: str = Field("0", alias="total_credito")
    total: str = Field(..., alias="total_orden")
    observations: str = Field("", alias="observaciones")

    lines: list[OrderLineV1] = Field(..., alias="detalle")
    payment_gateway: PaymentGatewayV1 = Field(default_factory=PaymentGatewayV1, alias="visanet")
    line_count: str = Field(..., alias="detalle_lineas")

    channel: str = "WEB"
    coordinates: str = Field("", alias="Direccion_Coordenadas")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
