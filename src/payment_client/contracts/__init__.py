"""
Contracts (data models).

The payment record shape shared by the browser and the server, plus the
lifecycle rules that go with it. Both the real HTTP transport and the mock
payment server exchange data shaped by these contracts.
"""

from .payment import (
    DEFAULT_PAYMENT_DEFAULTS,
    REQUIRED_FIELDS,
    PaymentDefaults,
    PaymentRecord,
    PaymentStatus,
    ProviderFailure,
    can_transition,
    construct_payment_record,
    is_terminal_status,
    missing_required_fields,
    validate_payment_record,
)

__all__ = [
    "DEFAULT_PAYMENT_DEFAULTS", "REQUIRED_FIELDS", "PaymentDefaults",
    "PaymentRecord", "PaymentStatus", "ProviderFailure", "can_transition",
    "construct_payment_record", "is_terminal_status",
    "missing_required_fields", "validate_payment_record",
]
