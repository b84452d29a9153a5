"""
Real HTTP transports.

These talk to the actual payment server over the network.

Important:
- Must satisfy the same PaymentTransport protocol as the mock server
- Must raise payment_client.errors.TransportError, never raw httpx errors

Switching:
The selection of mock vs real transport happens in payment_client.config only.
"""

from .transport import HttpxTransport

__all__ = ["HttpxTransport"]
