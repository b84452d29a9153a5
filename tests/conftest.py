"""Pytest fixtures for payment record and payment client tests."""

import pytest

from payment_client.clients.mocks.payment_server import MockPaymentServer
from payment_client.clients.payments import PaymentClient


@pytest.fixture
def payment_fields():
    return {
        "id": "p1",
        "amount": "10.00",
        "creator": "acct1",
        "service": "paypal",
        "orders": ["sku1"],
    }


@pytest.fixture
def server():
    """In-memory payment server; PAY-DECLINED is always refused by the provider."""
    return MockPaymentServer(accounts={"acct1": "USD"}, declined_transactions={"PAY-DECLINED"})


@pytest.fixture
def client(server):
    return PaymentClient(transport=server)
