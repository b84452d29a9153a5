"""
Payment client errors.

ValidationError is raised for local invariant failures and for server-side
rejections of create/process requests. TransportError covers everything that
went wrong on the wire. A provider declining the charge is NOT an error: it
comes back as a FAILED PaymentRecord (see contracts.payment.ProviderFailure).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class PaymentClientError(Exception):
    def __init__(self, message: str, *, payload: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.payload = payload or {}


class ValidationError(PaymentClientError, ValueError):
    """A payment violates the record's invariants or was rejected by the server."""

    def __init__(
        self,
        message: str,
        *,
        errors: Optional[List[str]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, payload=payload)
        self.errors = list(errors or [message])


class TransportError(PaymentClientError):
    """Network failure or non-2xx response from the payment endpoint."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, payload=payload)
        self.status_code = status_code


class TransportTimeout(TransportError):
    pass
