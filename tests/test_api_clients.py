"""HTTP client tests against an in-process aiohttp server."""
from __future__ import annotations

from decimal import Decimal

import pytest
from aiohttp import web

from kamu.core.config import ApiConfig
from kamu.core.exceptions import ApiError, OrderCreationError, PaymentError, ValidationError
from kamu.domain.entities.order import OrderItem
from kamu.integrations.api_client import ApiClient
from kamu.integrations.delivery_client import DeliveryServiceClient
from kamu.integrations.order_client import OrderServiceClient
from kamu.integrations.payment_client import PaymentServiceClient


def _backend(state: dict) -> web.Application:
    app = web.Application()

    async def create_order(request: web.Request) -> web.Response:
        body = await request.json()
        state["requests"].append((request.path, body, request.headers.get("Authorization")))
        if state["order_status"] >= 400:
            return web.json_response({"message": "Service unavailable"}, status=state["order_status"])
        order = {"id": 101, **body}
        return web.json_response({"message": "Order created", "order": order}, status=201)

    async def get_order(request: web.Request) -> web.Response:
        order_id = request.match_info["order_id"]
        if order_id == "latest":
            return web.json_response({"message": "No orders"}, status=404)
        return web.json_response(
            {
                "id": order_id,
                "customerId": "cust_1",
                "restaurantId": 7,
                "totalBill": 14.97,
                "status": "accepted",
            }
        )

    async def update_order(request: web.Request) -> web.Response:
        body = await request.json()
        state["requests"].append((request.path, body, None))
        return web.json_response(
            {
                "order": {
                    "id": request.match_info["order_id"],
                    "customerId": "cust_1",
                    "restaurantId": "r1",
                    "totalBill": 14.97,
                    "status": body["status"],
                }
            }
        )

    async def process_payment(request: web.Request) -> web.Response:
        body = await request.json()
        state["requests"].append((request.path, body, None))
        status = state["payment_status"]
        if status == 402:
            return web.json_response({"error": "insufficient funds"}, status=402)
        if status >= 500:
            return web.Response(text="upstream exploded", status=status)
        return web.json_response({"success": True, "transactionId": "txn_9"})

    async def trip_for_order(request: web.Request) -> web.Response:
        return web.json_response(
            [{"id": "trip_1", "orderId": request.match_info["order_id"], "status": "PICKED_UP"}]
        )

    async def patch_trip(request: web.Request) -> web.Response:
        body = await request.json()
        return web.json_response({"id": request.match_info["trip_id"], "orderId": "101", **body})

    app.router.add_post("/api/orders", create_order)
    app.router.add_get("/api/orders/{order_id}", get_order)
    app.router.add_put("/api/orders/{order_id}", update_order)
    app.router.add_post("/api/payments/process", process_payment)
    app.router.add_get("/api/trips/order/{order_id}", trip_for_order)
    app.router.add_patch("/api/trips/{trip_id}", patch_trip)
    return app


@pytest.fixture()
async def backend(aiohttp_client):
    state = {"requests": [], "order_status": 201, "payment_status": 200}
    client = await aiohttp_client(_backend(state))
    api = ApiClient(
        ApiConfig(base_url=str(client.make_url("/")).rstrip("/"), timeout=5),
        token_provider=lambda: "tok_123",
    )
    try:
        yield state, api
    finally:
        await api.close()


def _items() -> list[OrderItem]:
    return [OrderItem(food_item_id="d1", quantity=2, price=Decimal("5.99"), name="Pad Thai")]


@pytest.mark.asyncio
async def test_create_order_sends_camel_case_payload(backend):
    state, api = backend
    orders = OrderServiceClient(api)

    order = await orders.create_order("cust_1", "r1", _items(), Decimal("14.97"), Decimal("2.99"))

    assert order.id == "101"
    assert order.status == "PENDING"
    path, body, auth = state["requests"][0]
    assert path == "/api/orders"
    assert auth == "Bearer tok_123"
    assert body["customerId"] == "cust_1"
    assert body["totalBill"] == 14.97
    assert body["deliveryFee"] == 2.99
    assert body["items"] == [{"foodItemId": "d1", "quantity": 2, "price": 5.99, "name": "Pad Thai"}]


@pytest.mark.asyncio
async def test_create_order_failure_raises_order_creation_error(backend):
    state, api = backend
    state["order_status"] = 503

    with pytest.raises(OrderCreationError) as exc_info:
        await OrderServiceClient(api).create_order("cust_1", "r1", _items(), Decimal("14.97"), Decimal("2.99"))

    assert exc_info.value.status == 503
    assert exc_info.value.message == "Service unavailable"


@pytest.mark.asyncio
async def test_get_order_normalizes_payload(backend):
    _, api = backend
    orders = OrderServiceClient(api)

    order = await orders.get_order("55")

    assert order.restaurant_id == "7"
    assert order.status == "CONFIRMED"
    assert order.total_bill == Decimal("14.97")
    assert await orders.get_latest_order() is None


@pytest.mark.asyncio
async def test_cancel_order_puts_cancelled_status(backend):
    state, api = backend

    order = await OrderServiceClient(api).cancel_order("55")

    assert order.status == "CANCELLED"
    assert state["requests"][-1] == ("/api/orders/55", {"status": "CANCELLED"}, None)


@pytest.mark.asyncio
async def test_payment_success(backend):
    state, api = backend

    result = await PaymentServiceClient(api).process_payment(Decimal("14.97"), "card_1", "101")

    assert result.success
    assert result.transaction_id == "txn_9"
    _, body, _ = state["requests"][-1]
    assert body["amount"] == 14.97
    assert body["paymentMethodId"] == "card_1"
    assert body["orderId"] == "101"
    assert "timestamp" in body


@pytest.mark.asyncio
async def test_payment_decline_is_a_result(backend):
    state, api = backend
    state["payment_status"] = 402

    result = await PaymentServiceClient(api).process_payment(Decimal("14.97"), "card_1", "101")

    assert not result.success
    assert result.error == "insufficient funds"


@pytest.mark.asyncio
async def test_payment_server_error_raises(backend):
    state, api = backend
    state["payment_status"] = 500

    with pytest.raises(PaymentError) as exc_info:
        await PaymentServiceClient(api).process_payment(Decimal("14.97"), "card_1", "101")

    assert exc_info.value.order_id == "101"
    assert exc_info.value.message == "upstream exploded"


@pytest.mark.asyncio
async def test_payment_local_validation_skips_network(backend):
    state, api = backend
    payments = PaymentServiceClient(api)

    assert (await payments.process_payment(Decimal("0"), "card_1", "101")).error == "Invalid payment amount"
    assert (await payments.process_payment(Decimal("5"), "", "101")).error == "Payment method not selected"
    assert state["requests"] == []


@pytest.mark.asyncio
async def test_trip_lookup_and_status_update(backend):
    _, api = backend
    delivery = DeliveryServiceClient(api)

    trip = await delivery.get_trip_for_order("101")
    assert trip.id == "trip_1"
    assert trip.status == "picked_up"

    updated = await delivery.update_trip_status("trip_1", "DELIVERED")
    assert updated.is_finished

    with pytest.raises(ValidationError):
        await delivery.update_trip_status("trip_1", "teleported")


@pytest.mark.asyncio
async def test_unknown_route_raises_api_error(backend):
    _, api = backend

    with pytest.raises(ApiError) as exc_info:
        await api.get("/api/nowhere")

    assert exc_info.value.status == 404
    assert not exc_info.value.is_network_error
