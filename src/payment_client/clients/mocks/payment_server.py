"""
Mock payment server.

Purpose:
- Stands in for the remote payment endpoint during development and tests
- Does NOT make any network calls
- Answers with the same JSON shapes and HTTP failure codes the real server uses

Behavior:
- credentials are served per provider (paypal by default)
- created payments are kept in memory and start PENDING
- processing settles the payment to PROCESSED, or FAILED when the provider
  transaction is declined (declined_transactions, or an order whose status
  is DECLINED)

Swap:
Replace with clients.real_http.HttpxTransport when a payment server URL is set.
"""

import copy
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import unquote

from payment_client.contracts.payment import PaymentStatus
from payment_client.errors import TransportError, ValidationError
from payment_client.response_wrappers import normalize_payment_record

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

_MOCK_CREDENTIALS: Dict[str, Dict[str, Any]] = {
    "paypal": {
        "service": "paypal",
        "clientId": "mock-paypal-client-id",
        "merchantId": "MOCKMERCHANT01",
        "environment": "sandbox",
    },
    "stripe": {
        "service": "stripe",
        "clientId": "pk_test_mock",
        "merchantId": "acct_mock",
        "environment": "sandbox",
    },
}


class MockPaymentServer:
    """
    In-memory payment server speaking the PaymentTransport protocol.

    Parameters
    ----------
    base_url : str
        Resource path the server answers on. Default "/payment".
    accounts : dict, optional
        creator account id -> currency that account accepts. Payments whose
        currency differs are rejected with 422.
    declined_transactions : iterable of str, optional
        Provider transaction ids the provider refuses to settle.
    credentials : dict, optional
        Provider name -> bootstrap metadata; replaces the built-in sandbox set.
    """

    def __init__(
        self,
        base_url: str = "/payment",
        accounts: Optional[Dict[str, str]] = None,
        declined_transactions: Optional[Iterable[str]] = None,
        credentials: Optional[Dict[str, Dict[str, Any]]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.accounts = {k: v.upper() for k, v in (accounts or {}).items()}
        self.declined_transactions = set(declined_transactions or ())
        self._credentials = copy.deepcopy(credentials if credentials is not None else _MOCK_CREDENTIALS)

        # In-memory stores (reset on restart)
        self._payments: Dict[str, Dict[str, Any]] = {}
        self.calls: List[tuple] = []

        logger.info("[PAYMENTS MOCK] Server initialised at %s", self.base_url or "/")

    # ------------------------------------------------------------------
    # PaymentTransport
    # ------------------------------------------------------------------

    async def get(self, path: str, *, params: Optional[Dict[str, Any]] = None) -> Any:
        self.calls.append(("GET", path, dict(params or {})))
        resource = self._resource(path)
        if resource == "":
            return self._list(params or {})
        if resource == "credentials":
            return self._credentials_for((params or {}).get("service", ""))
        raise TransportError(f"GET {path} not found.", status_code=404, payload={"message": "Not found."})

    async def post(self, path: str, payload: Dict[str, Any]) -> Any:
        self.calls.append(("POST", path, copy.deepcopy(payload)))
        if self._resource(path) != "":
            raise TransportError(f"POST {path} not allowed.", status_code=405, payload={"message": "Method not allowed."})
        return self._create(payload.get("payment"))

    async def put(self, path: str, payload: Dict[str, Any]) -> Any:
        self.calls.append(("PUT", path, copy.deepcopy(payload)))
        resource = self._resource(path)
        if not resource or "/" in resource:
            raise TransportError(f"PUT {path} not found.", status_code=404, payload={"message": "Not found."})
        return self._process(unquote(resource), payload.get("order"), payload.get("payment"))

    # ------------------------------------------------------------------
    # Inspection helpers
    # ------------------------------------------------------------------

    def stored_payment(self, payment_id: str) -> Optional[Dict[str, Any]]:
        payment = self._payments.get(payment_id)
        return copy.deepcopy(payment) if payment is not None else None

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _resource(self, path: str) -> str:
        if path == self.base_url:
            return ""
        prefix = f"{self.base_url}/"
        if path.startswith(prefix):
            return path[len(prefix):]
        raise TransportError(f"{path} not found.", status_code=404, payload={"message": "Not found."})

    def _list(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        def matches(payment: Dict[str, Any]) -> bool:
            return all(str(payment.get(key)) == str(value) for key, value in params.items())

        return [copy.deepcopy(p) for p in self._payments.values() if matches(p)]

    def _credentials_for(self, service: str) -> Dict[str, Any]:
        credentials = self._credentials.get(str(service).lower())
        if credentials is None:
            raise TransportError(
                f"No credentials for service {service!r}.",
                status_code=404,
                payload={"message": f"Unknown payment service '{service}'."},
            )
        return copy.deepcopy(credentials)

    def _create(self, payment: Any) -> Dict[str, Any]:
        if not isinstance(payment, dict):
            raise _rejected(400, "Request body must contain a payment object.")
        if payment.get("serviceId") is not None:
            raise _rejected(422, "A new payment must not carry a serviceId.")

        try:
            record = normalize_payment_record(
                {**payment, "status": PaymentStatus.PENDING.value, "validated": False, "error": None}
            )
        except ValidationError as exc:
            raise _rejected(422, str(exc), errors=exc.errors) from exc

        if record.id in self._payments:
            raise _rejected(409, f"Payment '{record.id}' already exists.")

        expected_currency = self.accounts.get(record.creator)
        if expected_currency and expected_currency != record.currency:
            raise _rejected(
                422,
                f"Account '{record.creator}' accepts {expected_currency}, not {record.currency}.",
            )

        stored = record.to_wire()
        self._payments[record.id] = stored
        logger.info("[PAYMENTS MOCK] Created payment id=%s amount=%s %s",
                    record.id, record.amount, record.currency)
        return copy.deepcopy(stored)

    def _process(self, payment_id: str, order: Any, payment: Any) -> Dict[str, Any]:
        stored = self._payments.get(payment_id)
        if stored is None:
            raise TransportError(
                f"Payment '{payment_id}' not found.",
                status_code=404,
                payload={"message": f"Payment '{payment_id}' not found."},
            )
        if isinstance(payment, dict) and payment.get("id") not in (None, payment_id):
            raise _rejected(400, "Payment id does not match the resource path.")
        if stored["status"] in (PaymentStatus.PROCESSED.value, PaymentStatus.FAILED.value):
            raise _rejected(409, f"Payment '{payment_id}' is already {stored['status']}.")
        if not isinstance(order, dict):
            raise _rejected(400, "Request body must contain the provider order.")

        transaction_id = order.get("transactionId") or order.get("id") or order.get("orderID")
        if not transaction_id:
            raise _rejected(422, "Provider order carries no transaction id.")

        order_amount = order.get("amount")
        try:
            amount_differs = order_amount is not None and Decimal(str(order_amount)) != Decimal(stored["amount"])
        except InvalidOperation as exc:
            raise _rejected(422, f"Provider order amount {order_amount!r} is not a number.") from exc
        if amount_differs:
            declined = {"code": "amount_mismatch",
                        "message": f"Provider charged {order_amount}, payment is for {stored['amount']}.",
                        "transactionId": transaction_id}
            return self._fail(stored, declined)

        declined_status = str(order.get("status", "")).upper() == "DECLINED"
        if declined_status or transaction_id in self.declined_transactions:
            declined = {"code": "declined",
                        "message": "The provider declined the transaction.",
                        "transactionId": transaction_id}
            return self._fail(stored, declined)

        stored.update(
            status=PaymentStatus.PROCESSED.value,
            validated=True,
            serviceId=str(transaction_id),
            error=None,
        )
        logger.info("[PAYMENTS MOCK] Payment %s -> PROCESSED (serviceId=%s)", payment_id, transaction_id)
        return copy.deepcopy(stored)

    def _fail(self, stored: Dict[str, Any], error: Dict[str, Any]) -> Dict[str, Any]:
        stored.update(status=PaymentStatus.FAILED.value, error=error)
        logger.info("[PAYMENTS MOCK] Payment %s -> FAILED (%s)", stored["id"], error["code"])
        return copy.deepcopy(stored)


def _rejected(status_code: int, message: str, errors: Optional[List[str]] = None) -> TransportError:
    payload: Dict[str, Any] = {"message": message}
    if errors:
        payload["errors"] = errors
    return TransportError(message, status_code=status_code, payload=payload)
