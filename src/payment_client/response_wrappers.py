from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator

from payment_client.contracts.payment import PaymentRecord, construct_payment_record
from payment_client.errors import ValidationError

# Older servers emitted the provider fields under these names.
_LEGACY_KEYS = {
    "service": ("service", "paymentService"),
    "serviceId": ("serviceId", "paymentServiceId", "service_id"),
}


class PaymentRecordWireModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    amount: str
    creator: str
    service: str
    orders: List[Union[str, Dict[str, Any]]]
    currency: Optional[str] = None
    service_id: Optional[str] = Field(default=None, alias="serviceId")
    status: Optional[str] = None
    validated: Optional[bool] = None
    created: Optional[str] = None
    error: Optional[Dict[str, Any]] = None
    order_service: Optional[str] = Field(default=None, alias="orderService")

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_as_string(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return value
        if isinstance(value, float):
            return format(Decimal(repr(value)), "f")
        if isinstance(value, Decimal):
            return format(value, "f")
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _upper_status(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value


def normalize_payment_record(raw: Any) -> PaymentRecord:
    """Turn a server payment body into a PaymentRecord, or raise ValidationError."""
    if not isinstance(raw, dict):
        raise ValidationError(
            f"Expected a payment object, got {type(raw).__name__}.",
            payload={"body": raw},
        )

    data = dict(raw)
    for canonical, keys in _LEGACY_KEYS.items():
        value = _first_present(data, *keys)
        for key in keys:
            data.pop(key, None)
        if value is not None:
            data[canonical] = value
    if data.get("orders") is None and data.get("orderId") is not None:
        data["orders"] = [data["orderId"]]

    try:
        model = PaymentRecordWireModel.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(
            f"Payment response validation failed: {exc}",
            errors=[_describe(err) for err in exc.errors()],
            payload=raw,
        ) from exc

    fields = model.model_dump(by_alias=True, exclude_none=True)
    try:
        return construct_payment_record(fields)
    except ValidationError as exc:
        exc.payload = raw
        raise


def _first_present(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _describe(error: Dict[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error.get('msg', 'invalid')}"
