"""
Payment contract.

PaymentRecord is the one shape both sides of the payment flow agree on:
- the browser builds one before charging the user
- the server echoes one back after create/process

Records are immutable. Lifecycle changes go through PaymentRecord.transition
(or the mark_* shortcuts), which return a new record and refuse moves the
status table does not allow.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from payment_client.errors import ValidationError

OrderItem = Union[str, Dict[str, Any]]


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------

class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    VALIDATED = "VALIDATED"
    PROCESSED = "PROCESSED"
    FAILED = "FAILED"


# Position on the forward path. FAILED sits outside it.
_STATUS_RANK: Dict[PaymentStatus, int] = {
    PaymentStatus.PENDING: 0,
    PaymentStatus.VALIDATED: 1,
    PaymentStatus.PROCESSED: 2,
}

_TERMINAL_STATUSES = {PaymentStatus.PROCESSED, PaymentStatus.FAILED}


def is_terminal_status(status: PaymentStatus) -> bool:
    """Return True if the payment has reached a final, non-changeable state."""
    return PaymentStatus(status) in _TERMINAL_STATUSES


def can_transition(current: PaymentStatus, target: PaymentStatus) -> bool:
    current = PaymentStatus(current)
    target = PaymentStatus(target)
    if current in _TERMINAL_STATUSES or current == target:
        return False
    if target == PaymentStatus.FAILED:
        return True
    return _STATUS_RANK[target] > _STATUS_RANK[current]


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2019-01-01T00:00:00.000Z"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class PaymentDefaults:
    """
    Values applied to optional fields when a record is constructed.

    currency   ISO 4217 code used when the caller gives none ("USD")
    status     starting lifecycle status (PENDING)
    validated  server-side validation flag (False)
    clock      callable producing the `created` timestamp
    """

    currency: str = "USD"
    status: PaymentStatus = PaymentStatus.PENDING
    validated: bool = False
    clock: Callable[[], str] = utc_timestamp


DEFAULT_PAYMENT_DEFAULTS = PaymentDefaults()

REQUIRED_FIELDS = ("id", "amount", "creator", "service", "orders")

# wire key -> attribute name, for the keys that differ
_WIRE_TO_ATTR = {"serviceId": "service_id", "orderService": "order_service"}

# Plain notation only: no sign, exponent, digit separators or padding.
_AMOUNT_PATTERN = re.compile(r"[0-9]+(\.[0-9]+)?")


# ---------------------------------------------------------------------------
# Record
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProviderFailure:
    """Readable view over the `error` object of a FAILED payment."""

    code: str
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_error(cls, error: Mapping[str, Any]) -> "ProviderFailure":
        details = {k: v for k, v in error.items() if k not in ("code", "message")}
        return cls(
            code=str(error.get("code") or "unknown"),
            message=str(error.get("message") or ""),
            details=details,
        )


@dataclass(frozen=True)
class PaymentRecord:
    id: str
    amount: str
    creator: str
    service: str
    orders: List[OrderItem]
    currency: str = DEFAULT_PAYMENT_DEFAULTS.currency
    service_id: Optional[str] = None
    status: PaymentStatus = DEFAULT_PAYMENT_DEFAULTS.status
    validated: bool = DEFAULT_PAYMENT_DEFAULTS.validated
    created: str = field(default_factory=utc_timestamp)
    error: Optional[Dict[str, Any]] = None
    order_service: Optional[str] = None

    def __post_init__(self) -> None:
        # Frozen: normalized values have to go through object.__setattr__.
        try:
            object.__setattr__(self, "status", PaymentStatus(self.status))
        except (TypeError, ValueError):
            raise ValidationError(f"Unknown payment status {self.status!r}.") from None
        if isinstance(self.currency, str):
            object.__setattr__(self, "currency", self.currency.strip().upper())
        if isinstance(self.orders, tuple):
            object.__setattr__(self, "orders", list(self.orders))

        errors = validate_payment_record(self)
        if errors:
            raise ValidationError(
                f"Invalid payment {self.id!r}: {'; '.join(errors)}",
                errors=errors,
            )

    @classmethod
    def from_fields(
        cls,
        fields: Mapping[str, Any],
        defaults: PaymentDefaults = DEFAULT_PAYMENT_DEFAULTS,
    ) -> "PaymentRecord":
        return construct_payment_record(fields, defaults)

    @property
    def amount_decimal(self) -> Decimal:
        return Decimal(self.amount)

    @property
    def failure(self) -> Optional[ProviderFailure]:
        if self.status != PaymentStatus.FAILED or self.error is None:
            return None
        return ProviderFailure.from_error(self.error)

    def to_wire(self, *, include_service_id: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "amount": self.amount,
            "currency": self.currency,
            "creator": self.creator,
            "service": self.service,
            "serviceId": self.service_id,
            "orders": list(self.orders),
            "status": self.status.value,
            "validated": self.validated,
            "created": self.created,
            "error": self.error,
            "orderService": self.order_service,
        }
        if not include_service_id:
            data.pop("serviceId")
        return data

    # -- lifecycle --

    def transition(
        self,
        status: PaymentStatus,
        *,
        service_id: Optional[str] = None,
        error: Optional[Dict[str, Any]] = None,
    ) -> "PaymentRecord":
        target = PaymentStatus(status)
        if not can_transition(self.status, target):
            raise ValidationError(
                f"Payment {self.id!r} cannot move from {self.status.value} to {target.value}."
            )
        changes: Dict[str, Any] = {"status": target}
        if service_id is not None:
            changes["service_id"] = service_id
        if target == PaymentStatus.FAILED:
            changes["error"] = error or {"code": "unknown"}
        elif error is not None:
            raise ValidationError("Only a FAILED payment may carry an error.")
        if target in (PaymentStatus.VALIDATED, PaymentStatus.PROCESSED):
            changes["validated"] = True
        return replace(self, **changes)

    def mark_validated(self) -> "PaymentRecord":
        return self.transition(PaymentStatus.VALIDATED)

    def mark_processed(self, service_id: str) -> "PaymentRecord":
        return self.transition(PaymentStatus.PROCESSED, service_id=service_id)

    def mark_failed(self, error: Dict[str, Any]) -> "PaymentRecord":
        return self.transition(PaymentStatus.FAILED, error=error)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def missing_required_fields(fields: Mapping[str, Any]) -> List[str]:
    missing = []
    for name in REQUIRED_FIELDS:
        value = fields.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    return missing


def validate_payment_record(record: PaymentRecord) -> List[str]:
    """
    Return a list of invariant violations.
    Empty list means the record is valid.
    """
    errors: List[str] = []

    for name in ("id", "creator", "service"):
        value = getattr(record, name)
        if not isinstance(value, str) or not value.strip():
            errors.append(f"{name} must be a non-empty string")

    errors.extend(_amount_errors(record.amount))

    if not isinstance(record.currency, str) or len(record.currency) != 3 or not record.currency.isalpha():
        errors.append(f"currency {record.currency!r} is not an ISO 4217 code")

    if not isinstance(record.orders, list):
        errors.append("orders must be a list of product ids or order objects")
    elif any(not isinstance(item, (str, dict)) for item in record.orders):
        errors.append("orders may only contain strings or objects")

    if not isinstance(record.validated, bool):
        errors.append("validated must be a boolean")

    if record.status == PaymentStatus.PENDING and record.service_id is not None:
        errors.append("serviceId must be absent while the payment is PENDING")
    if record.status == PaymentStatus.PROCESSED and not record.service_id:
        errors.append("serviceId is required once the payment is PROCESSED")

    if record.validated is True and record.status == PaymentStatus.PENDING:
        errors.append("validated payment cannot be PENDING")

    if record.status == PaymentStatus.FAILED and record.error is None:
        errors.append("FAILED payment must carry an error")
    if record.status != PaymentStatus.FAILED and record.error is not None:
        errors.append("error is only allowed on a FAILED payment")
    if record.error is not None and not isinstance(record.error, dict):
        errors.append("error must be an object")
    if record.order_service is not None and not isinstance(record.order_service, str):
        errors.append("orderService must be a string")

    try:
        datetime.fromisoformat(str(record.created).replace("Z", "+00:00"))
    except ValueError:
        errors.append(f"created {record.created!r} is not an ISO-8601 timestamp")

    return errors


def _amount_errors(amount: Any) -> List[str]:
    if not isinstance(amount, str):
        return [f"amount must be a decimal string, got {type(amount).__name__}"]
    if not _AMOUNT_PATTERN.fullmatch(amount):
        return [f"amount {amount!r} is not a plain non-negative decimal string"]
    return []


def construct_payment_record(
    fields: Mapping[str, Any],
    defaults: PaymentDefaults = DEFAULT_PAYMENT_DEFAULTS,
) -> PaymentRecord:
    """
    Build a PaymentRecord from a mapping of wire or attribute keys.

    Raises ValidationError naming every missing required field before looking
    at anything else. Optional fields that are absent (or None) fall back to
    `defaults`.
    """
    missing = missing_required_fields(fields)
    if missing:
        raise ValidationError(
            f"Payment is missing required fields: {', '.join(missing)}",
            errors=[f"{name} is required" for name in missing],
        )

    values = {_WIRE_TO_ATTR.get(key, key): value for key, value in fields.items()}
    unknown = set(values) - set(PaymentRecord.__dataclass_fields__)
    if unknown:
        raise ValidationError(f"Unknown payment fields: {sorted(unknown)}")

    for name, fallback in (
        ("currency", defaults.currency),
        ("status", defaults.status),
        ("validated", defaults.validated),
    ):
        if values.get(name) is None:
            values[name] = fallback
    if values.get("created") is None:
        values["created"] = defaults.clock()

    amount = values["amount"]
    if isinstance(amount, Decimal) and amount.is_finite():
        values["amount"] = format(amount, "f")
    if isinstance(values["orders"], tuple):
        values["orders"] = list(values["orders"])

    return PaymentRecord(**values)
