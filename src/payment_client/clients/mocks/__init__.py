"""
Mock integration transports.

These return realistic payment-server responses without calling any external API.
They are used when:
- no payment server URL is configured
- we want to exercise the payment lifecycle end-to-end without a network

Important:
- Mocks must follow the SAME PaymentTransport protocol as the real transport.
- Mocks must return data shaped according to payment_client.contracts.
"""

from .payment_server import MockPaymentServer

__all__ = ["MockPaymentServer"]
