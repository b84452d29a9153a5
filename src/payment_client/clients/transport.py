from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

JsonDict = Dict[str, Any]


class PaymentTransport(Protocol):
    """
    HTTP capability the PaymentClient is given.

    Implementations send JSON, return the parsed JSON body, and raise
    payment_client.errors.TransportError for network failures and non-2xx
    responses. Timeouts and cancellation are theirs to handle.
    """

    async def get(self, path: str, *, params: Optional[JsonDict] = None) -> Any:
        ...

    async def post(self, path: str, payload: JsonDict) -> Any:
        ...

    async def put(self, path: str, payload: JsonDict) -> Any:
        ...
