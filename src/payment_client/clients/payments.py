"""
Payment lifecycle client.

Wraps the payment server's HTTP API. A payment goes through three phases:

1. get_provider_credentials()  bootstrap data for the provider's widget
2. create_payment(record)      server stores the payment as PENDING
   (the user then authorizes the charge with the provider, out of band)
3. process_payment(order, payment)  server verifies the provider transaction
   and settles the payment as PROCESSED or FAILED

The client keeps no state between calls. Callers are responsible for
running the phases in order and for passing process_payment the id that
create_payment returned.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Union
from urllib.parse import quote

from payment_client.clients.transport import PaymentTransport
from payment_client.contracts.payment import (
    PaymentRecord,
    PaymentStatus,
    can_transition,
    construct_payment_record,
)
from payment_client.errors import TransportError, ValidationError
from payment_client.response_wrappers import normalize_payment_record

logger = logging.getLogger(__name__)

PaymentInput = Union[PaymentRecord, Mapping[str, Any]]

# Server answers that mean "your payment is wrong", not "the wire is broken".
_REJECTION_STATUS_CODES = {400, 409, 422}


class PaymentClient:
    def __init__(
        self,
        transport: Optional[PaymentTransport] = None,
        base_url: str = "/payment",
        default_service: str = "paypal",
    ) -> None:
        if transport is None:
            raise ValueError("PaymentClient requires a transport.")
        self.transport = transport
        self.base_url = base_url.rstrip("/")
        self.default_service = default_service

    async def list_payments(self, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Return the payments matching `params`, exactly as the server sent them."""
        data = await self.transport.get(self.base_url, params=dict(params or {}))
        if not isinstance(data, list):
            raise TransportError(
                f"GET {self.base_url} returned {type(data).__name__}, expected a list.",
                payload={"body": data},
            )
        return data

    async def get_provider_credentials(self, service: Optional[str] = None) -> Dict[str, Any]:
        """Fetch the metadata the provider's client-side widget needs (client token, merchant id)."""
        url = f"{self.base_url}/credentials"
        return await self.transport.get(url, params={"service": service or self.default_service})

    async def create_payment(self, record: PaymentInput) -> PaymentRecord:
        payment = _as_record(record)
        logger.info("[PAYMENTS] Creating payment id=%s amount=%s %s service=%s",
                    payment.id, payment.amount, payment.currency, payment.service)
        body = {"payment": payment.to_wire(include_service_id=False)}
        try:
            data = await self.transport.post(self.base_url, body)
        except TransportError as exc:
            if exc.status_code in _REJECTION_STATUS_CODES:
                raise _rejection(exc, f"create payment {payment.id!r}") from exc
            logger.warning("[PAYMENTS] Could not create payment %s: %s", payment.id, exc)
            raise

        created = normalize_payment_record(data)
        logger.info("[PAYMENTS] Payment %s created with status %s", created.id, created.status.value)
        return created

    async def process_payment(self, order: Dict[str, Any], payment: PaymentInput) -> PaymentRecord:
        """
        Settle a payment after the user authorized it with the provider.

        `order` is the provider's post-authorization object. A declined charge
        comes back as a FAILED record with `error` set; it is not raised.
        """
        submitted = _as_record(payment)
        url = f"{self.base_url}/{quote(submitted.id, safe='')}"
        logger.info("[PAYMENTS] Processing payment id=%s", submitted.id)
        body = {"order": order, "payment": submitted.to_wire()}
        try:
            data = await self.transport.put(url, body)
        except TransportError as exc:
            if exc.status_code in _REJECTION_STATUS_CODES:
                raise _rejection(exc, f"process payment {submitted.id!r}") from exc
            logger.warning("[PAYMENTS] Could not process payment %s: %s", submitted.id, exc)
            raise

        result = normalize_payment_record(data)
        _check_settlement(submitted, result, data)

        if result.status == PaymentStatus.FAILED:
            logger.warning("[PAYMENTS] Payment %s failed: %s", result.id, (result.error or {}).get("code"))
        else:
            logger.info("[PAYMENTS] Payment %s -> %s", result.id, result.status.value)
        return result


def _as_record(payment: PaymentInput) -> PaymentRecord:
    if isinstance(payment, PaymentRecord):
        return payment
    return construct_payment_record(payment)


def _rejection(exc: TransportError, action: str) -> ValidationError:
    logger.warning("[PAYMENTS] Server rejected %s: %s", action, exc)
    errors = exc.payload.get("errors") if isinstance(exc.payload.get("errors"), list) else None
    message = exc.payload.get("message") or str(exc)
    return ValidationError(f"Server rejected {action}: {message}", errors=errors, payload=exc.payload)


def _check_settlement(submitted: PaymentRecord, result: PaymentRecord, raw: Any) -> None:
    if result.id != submitted.id:
        raise ValidationError(
            f"Server settled payment {result.id!r} instead of {submitted.id!r}.",
            payload=raw,
        )
    if result.status != submitted.status and not can_transition(submitted.status, result.status):
        raise ValidationError(
            f"Server moved payment {submitted.id!r} from {submitted.status.value} "
            f"to {result.status.value}.",
            payload=raw,
        )
