"""
Configuration for the payment client.

Settings come from the environment (a .env file is honoured). The choice
between the real HTTP transport and the in-memory mock server is made here
and nowhere else.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from payment_client.clients.mocks.payment_server import MockPaymentServer
from payment_client.clients.payments import PaymentClient
from payment_client.clients.real_http.transport import HttpxTransport
from payment_client.clients.transport import PaymentTransport

logger = logging.getLogger(__name__)


class PaymentClientSettings(BaseModel):
    """Payment client configuration"""

    api_url: str = ""
    base_url: str = "/payment"
    timeout_seconds: float = Field(default=20.0, gt=0)
    default_service: str = "paypal"
    integrations_mode: str = "auto"

    @field_validator("integrations_mode")
    @classmethod
    def _known_mode(cls, value: str) -> str:
        mode = value.strip().lower() or "auto"
        if mode in {"live"}:
            mode = "real"
        if mode in {"test"}:
            mode = "mock"
        if mode not in {"auto", "real", "mock"}:
            raise ValueError(f"integrations_mode must be auto, real or mock; got {value!r}")
        return mode

    @field_validator("base_url")
    @classmethod
    def _leading_slash(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if value and not value.startswith("/"):
            value = f"/{value}"
        return value

    @classmethod
    def from_env(cls) -> "PaymentClientSettings":
        load_dotenv()
        return cls(
            api_url=os.getenv("PAYMENT_API_URL", ""),
            base_url=os.getenv("PAYMENT_BASE_PATH", "/payment"),
            timeout_seconds=float(os.getenv("PAYMENT_TIMEOUT_SECONDS", "20.0")),
            default_service=os.getenv("PAYMENT_DEFAULT_SERVICE", "paypal"),
            integrations_mode=os.getenv("PAYMENT_INTEGRATIONS_MODE", "auto"),
        )

    def use_real_transport(self) -> bool:
        if self.integrations_mode == "real":
            return True
        if self.integrations_mode == "mock":
            return False
        return bool(self.api_url)


def build_transport(settings: PaymentClientSettings) -> PaymentTransport:
    if settings.use_real_transport():
        if not settings.api_url:
            raise ValueError("PAYMENT_API_URL is not configured.")
        logger.info("[PAYMENTS] Using HTTP transport at %s", settings.api_url)
        return HttpxTransport(api_url=settings.api_url, timeout_seconds=settings.timeout_seconds)
    logger.info("[PAYMENTS] Using mock payment server")
    return MockPaymentServer(base_url=settings.base_url)


def build_payment_client(
    settings: Optional[PaymentClientSettings] = None,
    transport: Optional[PaymentTransport] = None,
) -> PaymentClient:
    settings = settings or PaymentClientSettings.from_env()
    return PaymentClient(
        transport=transport or build_transport(settings),
        base_url=settings.base_url,
        default_service=settings.default_service,
    )
