"""
API tests for the cart, order and payment endpoints.
"""

import uuid
from decimal import Decimal

import pytest

CARTS = "/api/v1/carts"
ORDERS = "/api/v1/orders"
PAYMENTS = "/api/v1/payments"


def item(product_id=None, price="10.00", currency="USD", quantity=1):
    return {
        "product_id": str(product_id or uuid.uuid4()),
        "product": {"name": "Phone X", "sku": "PX-1", "slug": "phone-x"},
        "unit_price": price,
        "currency": currency,
        "quantity": quantity,
    }


async def create_cart(client, headers, user_id=None):
    payload = {"user_id": str(user_id)} if user_id else {}
    response = await client.post(CARTS, json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def add_item(client, headers, cart_id, payload):
    response = await client.post(f"{CARTS}/{cart_id}/items", json=payload, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


class TestCheckoutApi:
    @pytest.mark.asyncio
    async def test_cart_to_paid_order(self, client, customer_headers, admin_headers):
        user_id = uuid.uuid4()
        cart = await create_cart(client, customer_headers, user_id)
        phone_id = uuid.uuid4()
        await add_item(client, customer_headers, cart["id"], item(phone_id, "100.00", quantity=1))
        await add_item(client, customer_headers, cart["id"], item(phone_id, "100.00", quantity=2))
        cart = await add_item(client, customer_headers, cart["id"], item(price="5.00"))

        assert sorted(line["quantity"] for line in cart["items"]) == [1, 3]

        response = await client.post(
            ORDERS, json={"cart_id": cart["id"]}, headers=customer_headers
        )
        assert response.status_code == 201, response.text
        order = response.json()
        assert order["status"] == "pending"
        assert Decimal(order["subtotal"]) == Decimal("305")
        assert order["items"][0]["product_data"]["name"] == "Phone X"

        emptied = await client.get(f"{CARTS}/{cart['id']}", headers=customer_headers)
        assert emptied.json()["items"] == []

        response = await client.post(
            PAYMENTS, json={"order_id": order["id"]}, headers=customer_headers
        )
        assert response.status_code == 201, response.text
        payment = response.json()
        assert payment["status"] == "processing"
        assert Decimal(payment["amount"]) == Decimal("305")

        response = await client.put(
            f"{PAYMENTS}/{payment['id']}/complete",
            json={"transaction_id": "txn_1"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "succeeded"

        payments = await client.get(
            f"{ORDERS}/{order['id']}/payments", headers=customer_headers
        )
        assert [p["id"] for p in payments.json()] == [payment["id"]]
        orders = await client.get(f"{ORDERS}/user/{user_id}", headers=customer_headers)
        assert [o["id"] for o in orders.json()] == [order["id"]]

    @pytest.mark.asyncio
    async def test_order_status_flow(self, client, customer_headers, admin_headers):
        cart = await create_cart(client, customer_headers)
        await add_item(client, customer_headers, cart["id"], item())
        order = (
            await client.post(ORDERS, json={"cart_id": cart["id"]}, headers=customer_headers)
        ).json()
        url = f"{ORDERS}/{order['id']}/status"

        processing = await client.put(url, json={"status": "processing"}, headers=admin_headers)
        backwards = await client.put(url, json={"status": "pending"}, headers=admin_headers)
        unknown = await client.put(url, json={"status": "lost"}, headers=admin_headers)

        assert processing.status_code == 200
        assert processing.json()["status"] == "processing"
        assert backwards.status_code == 400
        assert backwards.json()["error"]["code"] == "Order.InvalidStatusTransition"
        assert unknown.status_code == 422

    @pytest.mark.asyncio
    async def test_empty_cart_cannot_be_ordered(self, client, customer_headers):
        cart = await create_cart(client, customer_headers)

        response = await client.post(
            ORDERS, json={"cart_id": cart["id"]}, headers=customer_headers
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "Order.EmptyCart"


class TestCartApi:
    @pytest.mark.asyncio
    async def test_update_remove_and_clear(self, client, customer_headers):
        cart = await create_cart(client, customer_headers)
        await add_item(client, customer_headers, cart["id"], item())
        cart = await add_item(client, customer_headers, cart["id"], item())
        first, second = cart["items"]

        updated = await client.put(
            f"{CARTS}/{cart['id']}/items/{first['id']}",
            json={"quantity": 5},
            headers=customer_headers,
        )
        removed = await client.delete(
            f"{CARTS}/{cart['id']}/items/{second['id']}", headers=customer_headers
        )
        cleared = await client.delete(f"{CARTS}/{cart['id']}/items", headers=customer_headers)

        assert {i["id"]: i["quantity"] for i in updated.json()["items"]}[first["id"]] == 5
        assert [i["id"] for i in removed.json()["items"]] == [first["id"]]
        assert cleared.json()["items"] == []

    @pytest.mark.asyncio
    async def test_assign_anonymous_cart(self, client, customer_headers):
        cart = await create_cart(client, customer_headers)
        user_id = str(uuid.uuid4())

        response = await client.put(
            f"{CARTS}/{cart['id']}/user", json={"user_id": user_id}, headers=customer_headers
        )
        found = await client.get(f"{CARTS}/user/{user_id}", headers=customer_headers)

        assert response.json()["user_id"] == user_id
        assert found.json()["id"] == cart["id"]

    @pytest.mark.asyncio
    async def test_mixed_currency_is_rejected(self, client, customer_headers):
        cart = await create_cart(client, customer_headers)
        await add_item(client, customer_headers, cart["id"], item())

        response = await client.post(
            f"{CARTS}/{cart['id']}/items",
            json=item(currency="EUR"),
            headers=customer_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "Cart.CurrencyMismatch"

    @pytest.mark.asyncio
    async def test_invalid_lines_are_rejected(self, client, customer_headers):
        cart = await create_cart(client, customer_headers)
        url = f"{CARTS}/{cart['id']}/items"

        negative = await client.post(url, json=item(price="-1"), headers=customer_headers)
        zero = await client.post(url, json=item(quantity=0), headers=customer_headers)

        assert negative.json()["error"]["code"] == "Order.NegativeAmount"
        assert zero.json()["error"]["code"] == "Cart.InvalidQuantity"

    @pytest.mark.asyncio
    async def test_unknown_cart(self, client, customer_headers):
        response = await client.get(f"{CARTS}/{uuid.uuid4()}", headers=customer_headers)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "Cart.NotFound"


class TestSalesAuthorizationApi:
    @pytest.mark.asyncio
    async def test_identity_required(self, client):
        response = await client.post(CARTS, json={})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "Auth.Unauthenticated"

    @pytest.mark.asyncio
    async def test_customer_cannot_settle_payments(self, client, customer_headers):
        response = await client.put(
            f"{PAYMENTS}/{uuid.uuid4()}/complete",
            json={"transaction_id": "txn_1"},
            headers=customer_headers,
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "Auth.Forbidden"
