"""
Payment integration clients.

PaymentClient drives the payment lifecycle over a PaymentTransport:
- clients/real_http: talks to the real payment server through httpx
- clients/mocks: in-memory payment server for development and tests

Key rule:
- Only PaymentClient builds payment URLs and request bodies.
- Transports only move JSON and report wire failures as TransportError.
"""

from .payments import PaymentClient
from .transport import PaymentTransport

__all__ = ["PaymentClient", "PaymentTransport"]
