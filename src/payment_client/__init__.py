"""
Shared payment record and payment lifecycle client.

The same PaymentRecord shape is used by the browser and by the server, so a
payment posted by one is accepted by the other. PaymentClient drives the
create -> authorize with provider -> process lifecycle against the payment
server.
"""

from .clients.payments import PaymentClient
from .clients.transport import PaymentTransport
from .config import PaymentClientSettings, build_payment_client
from .contracts.payment import (
    DEFAULT_PAYMENT_DEFAULTS,
    PaymentDefaults,
    PaymentRecord,
    PaymentStatus,
    ProviderFailure,
    can_transition,
    construct_payment_record,
    is_terminal_status,
)
from .errors import PaymentClientError, TransportError, TransportTimeout, ValidationError

__all__ = [
    # contracts
    "DEFAULT_PAYMENT_DEFAULTS", "PaymentDefaults", "PaymentRecord", "PaymentStatus",
    "ProviderFailure", "can_transition", "construct_payment_record", "is_terminal_status",
    # client
    "PaymentClient", "PaymentTransport", "PaymentClientSettings", "build_payment_client",
    # errors
    "PaymentClientError", "TransportError", "TransportTimeout", "ValidationError",
]
