import pytest

from payment_client.clients.mocks.payment_server import MockPaymentServer
from payment_client.errors import TransportError


@pytest.fixture
def created(payment_fields):
    return {**payment_fields, "currency": "USD", "created": "2019-01-01T00:00:00.000Z"}


@pytest.mark.asyncio
async def test_create_stores_pending_copy(server, created):
    body = await server.post("/payment", {"payment": created})

    assert body["status"] == "PENDING"
    assert body["serviceId"] is None
    assert server.stored_payment("p1") == body

    body["status"] = "TAMPERED"
    assert server.stored_payment("p1")["status"] == "PENDING"


@pytest.mark.asyncio
async def test_create_rejects_service_id_and_bad_payloads(server, created):
    with pytest.raises(TransportError) as exc_info:
        await server.post("/payment", {"payment": {**created, "serviceId": "PAY-1"}})
    assert exc_info.value.status_code == 422

    with pytest.raises(TransportError) as exc_info:
        await server.post("/payment", {"payment": {"id": "p1"}})
    assert exc_info.value.status_code == 422
    assert exc_info.value.payload["errors"]

    with pytest.raises(TransportError) as exc_info:
        await server.post("/payment", {})
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_unknown_credentials_service_is_404(server):
    with pytest.raises(TransportError) as exc_info:
        await server.get("/payment/credentials", params={"service": "bitcoin"})
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_custom_credentials_replace_sandbox_set():
    server = MockPaymentServer(credentials={"paypal": {"clientId": "live-id"}})
    assert await server.get("/payment/credentials", params={"service": "PayPal"}) == {"clientId": "live-id"}


@pytest.mark.asyncio
async def test_paths_outside_base_are_404(server):
    with pytest.raises(TransportError) as exc_info:
        await server.get("/orders")
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_process_decodes_percent_encoded_id(server, created):
    await server.post("/payment", {"payment": {**created, "id": "order 1/ä"}})
    body = await server.put("/payment/order%201%2F%C3%A4", {"order": {"transactionId": "PAY-1"}})
    assert body["id"] == "order 1/ä"
    assert body["status"] == "PROCESSED"


@pytest.mark.asyncio
async def test_process_needs_transaction_id(server, created):
    await server.post("/payment", {"payment": created})
    with pytest.raises(TransportError) as exc_info:
        await server.put("/payment/p1", {"order": {"status": "COMPLETED"}})
    assert exc_info.value.status_code == 422


@pytest.mark.asyncio
async def test_charged_amount_mismatch_fails_payment(server, created):
    await server.post("/payment", {"payment": created})
    body = await server.put("/payment/p1", {"order": {"transactionId": "PAY-1", "amount": "9.99"}})

    assert body["status"] == "FAILED"
    assert body["error"]["code"] == "amount_mismatch"
    assert body["serviceId"] is None


@pytest.mark.asyncio
async def test_matching_amount_in_other_precision_settles(server, created):
    await server.post("/payment", {"payment": created})
    body = await server.put("/payment/p1", {"order": {"transactionId": "PAY-1", "amount": "10.0"}})
    assert body["status"] == "PROCESSED"


@pytest.mark.asyncio
async def test_payment_in_body_must_match_path(server, created):
    await server.post("/payment", {"payment": created})
    with pytest.raises(TransportError) as exc_info:
        await server.put("/payment/p1", {"order": {"transactionId": "PAY-1"}, "payment": {"id": "p2"}})
    assert exc_info.value.status_code == 400
