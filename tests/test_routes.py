"""End-to-end tests for the HTTP routes with the FastAPI TestClient."""

import logging

from conftest import run
from kiosk import actions, config
from kiosk.cart.draft import DRAFT_KEY
from kiosk.cart.store import CART_KEY
from kiosk.db import functions


def add(client, product_id, back="/order/burger"):
    return client.post("/order/add", data={"product_id": product_id, "back": back})


def place_order(session_factory, product_id, name="Ana"):
    async def create():
        async with session_factory() as db:
            result = await actions.create_order(db, {
                "name": name,
                "total": 10.0,
                "order": [{"id": product_id, "name": "Burger", "price": 10.0, "quantity": 1, "subtotal": 10.0}],
            })
            return result.value.id

    return run(create())


def pending_orders(session_factory):
    async def fetch():
        async with session_factory() as db:
            return await functions.get_pending_orders(db)

    return run(fetch())


def test_health(client):
    assert client.get("/health").json() == {"status": "kiosk running"}


class TestOrdering:
    def test_home_redirects_to_first_category(self, client):
        response = client.get("/", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/order/burger"

    def test_category_page_lists_its_products(self, client):
        response = client.get("/order/burger")

        assert response.status_code == 200
        assert "Cheese Burger" in response.text
        assert "Cola" not in response.text
        assert "The order is empty" in response.text

    def test_unknown_category(self, client):
        assert client.get("/order/pizza").status_code == 404

    def test_add_and_change_quantity(self, client, products):
        burger = products["Burger"]
        add(client, burger)
        response = add(client, burger)

        assert response.status_code == 200
        assert client.cookies.get(CART_KEY)
        assert "$20.00" in response.text

        client.post(f"/order/items/{burger}/increase", data={"back": "/checkout"})
        assert "Quantity: 3" in client.get("/checkout").text

        client.post(f"/order/items/{burger}/decrease", data={"back": "/checkout"})
        assert "Quantity: 2" in client.get("/checkout").text

    def test_cart_too_large_for_cookie_keeps_previous_cart(self, client, products, monkeypatch, caplog):
        add(client, products["Burger"])
        previous = client.cookies.get(CART_KEY)
        monkeypatch.setattr(config, "MAX_COOKIE_BYTES", len(CART_KEY) + len(previous))

        with caplog.at_level(logging.WARNING, logger="kiosk.main"):
            response = add(client, products["Cola"])

        assert response.status_code == 200
        assert client.cookies.get(CART_KEY) == previous
        assert "Cart change dropped" in caplog.text

    def test_remove_last_item_drops_cart_cookie(self, client, products):
        add(client, products["Cola"], back="/order/drinks")
        response = client.post(f"/order/items/{products['Cola']}/remove", data={"back": "/order/drinks"})

        assert "The order is empty" in response.text
        assert client.cookies.get(CART_KEY) is None

    def test_add_unknown_product(self, client):
        assert add(client, 999).status_code == 404

    def test_back_must_stay_in_app(self, client, products):
        response = client.post("/order/add", data={"product_id": products["Burger"], "back": "https://evil.test/"},
                               follow_redirects=False)

        assert response.headers["location"] == "/"

    def test_tampered_cart_cookie_is_ignored(self, client):
        client.cookies.set(CART_KEY, "not-a-token")

        assert "The order is empty" in client.get("/order/burger").text


class TestCheckout:
    def test_go_to_pay_redirects_to_provider(self, client, products, payment):
        add(client, products["Burger"])
        add(client, products["Burger"])

        response = client.post("/checkout", data={"name": "Ana"}, follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == payment.url
        assert client.cookies.get(DRAFT_KEY)
        session = payment.sessions[0]
        assert session["amount_minor_units"] == 2000
        assert session["success_url"] == "http://testserver/checkout/success?session_id={CHECKOUT_SESSION_ID}"
        assert session["cancel_url"] == "http://testserver/checkout/canceled"

    def test_empty_cart_stays_on_checkout(self, client, payment):
        response = client.post("/checkout", data={"name": "Ana"}, follow_redirects=False)

        assert response.status_code == 400
        assert "Your order is empty" in response.text
        assert payment.sessions == []

    def test_missing_name_stays_on_checkout(self, client, products, payment):
        add(client, products["Burger"])
        response = client.post("/checkout", data={"name": " "}, follow_redirects=False)

        assert response.status_code == 400
        assert "Your name is required" in response.text
        assert payment.sessions == []

    def test_success_page_submits_once(self, client, session_factory, products, payment):
        add(client, products["Burger"])
        add(client, products["Burger"])
        client.post("/checkout", data={"name": "Ana"}, follow_redirects=False)

        response = client.get("/checkout/success", params={"session_id": "cs_test_1"})

        assert response.status_code == 200
        assert "Your order was created!" in response.text
        assert "Order Done!" in response.text
        assert payment.checked == ["cs_test_1"]
        assert client.cookies.get(CART_KEY) is None
        assert client.cookies.get(DRAFT_KEY) is None

        again = client.get("/checkout/success", params={"session_id": "cs_test_1"})
        assert "There is no order to submit" in again.text

        orders = pending_orders(session_factory)
        assert len(orders) == 1
        assert orders[0].name == "Ana"
        assert orders[0].total == 20
        assert [(p.product_id, p.quantity) for p in orders[0].order_products] == [(products["Burger"], 2)]

    def test_unpaid_session_is_not_submitted(self, client, session_factory, products, payment):
        payment.paid = False
        add(client, products["Burger"])
        client.post("/checkout", data={"name": "Ana"}, follow_redirects=False)

        response = client.get("/checkout/success", params={"session_id": "cs_test_1"})

        assert "Your payment was not completed" in response.text
        assert "Your order was not submitted" in response.text
        assert "There is no order to submit" not in response.text
        assert client.cookies.get(DRAFT_KEY)
        assert pending_orders(session_factory) == []

    def test_return_without_session_id_is_not_submitted(self, client, session_factory, products, payment):
        add(client, products["Burger"])
        client.post("/checkout", data={"name": "Ana"}, follow_redirects=False)

        response = client.get("/checkout/success")

        assert "We could not confirm your payment" in response.text
        assert "Your order was not submitted" in response.text
        assert payment.checked == []
        assert client.cookies.get(DRAFT_KEY)
        assert pending_orders(session_factory) == []

    def test_session_of_an_earlier_checkout_is_refused(self, client, session_factory, products, payment):
        add(client, products["Burger"])
        client.post("/checkout", data={"name": "Ana"}, follow_redirects=False)
        add(client, products["Burger"])
        client.post("/checkout", data={"name": "Ana"}, follow_redirects=False)
        assert [session["amount_minor_units"] for session in payment.sessions] == [1000, 2000]

        response = client.get("/checkout/success", params={"session_id": "cs_test_1"})

        assert "This payment does not match your order" in response.text
        assert client.cookies.get(DRAFT_KEY)
        assert pending_orders(session_factory) == []

    def test_canceled_discards_draft_and_cart(self, client, session_factory, products):
        add(client, products["Burger"])
        client.post("/checkout", data={"name": "Ana"}, follow_redirects=False)

        response = client.get("/checkout/canceled")

        assert response.status_code == 200
        assert client.cookies.get(CART_KEY) is None
        assert client.cookies.get(DRAFT_KEY) is None
        assert pending_orders(session_factory) == []


class TestOrderViews:
    def test_ready_orders_api(self, client, session_factory, products):
        assert client.get("/orders/api").json() == []

        order_id = place_order(session_factory, products["Burger"])
        response = client.post("/admin/orders/complete", data={"order_id": str(order_id)}, follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/admin/orders"

        ready = client.get("/orders/api").json()
        assert [order["id"] for order in ready] == [order_id]
        assert ready[0]["status"] is True
        assert ready[0]["order_products"][0]["product"]["name"] == "Burger"

    def test_pending_orders_api(self, client, session_factory, products):
        first = place_order(session_factory, products["Burger"], name="Ana")
        second = place_order(session_factory, products["Burger"], name="Bob")

        pending = client.get("/admin/orders/api").json()
        assert [order["id"] for order in pending] == [first, second]
        assert all(order["order_ready_at"] is None for order in pending)

    def test_complete_invalid_order(self, client):
        response = client.post("/admin/orders/complete", data={"order_id": "abc"})

        assert response.status_code == 400
        assert response.json()["detail"] == ["Invalid order"]

    def test_pages_render_with_poll_settings(self, client):
        for path in ["/orders", "/admin/orders"]:
            response = client.get(path)
            assert response.status_code == 200
            assert "setInterval" in response.text


class TestAdminProducts:
    def test_products_page(self, client):
        response = client.get("/admin/products")

        assert response.status_code == 200
        assert "Cheese Burger" in response.text
        assert "Drinks" in response.text

    def test_page_out_of_range_redirects(self, client):
        for page in ["0", "5"]:
            response = client.get("/admin/products", params={"page": page}, follow_redirects=False)
            assert response.status_code == 303
            assert response.headers["location"] == "/admin/products"

    def test_search(self, client):
        response = client.post("/admin/products/search", data={"search": " burg "}, follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/admin/products/search?search=burg"

        results = client.get(response.headers["location"])
        assert "Cheese Burger" in results.text
        assert "Cola" not in results.text

    def test_empty_search(self, client):
        response = client.post("/admin/products/search", data={"search": ""})

        assert response.status_code == 400
        assert "Search cannot be empty" in response.text

    def test_create_product(self, client):
        response = client.post("/admin/products/new", data={
            "name": "Fries", "price": "4", "category_id": "1", "image": "fries_01",
        }, follow_redirects=False)

        assert response.status_code == 303
        assert "Fries" in client.get("/admin/products").text

    def test_create_product_shows_errors(self, client):
        response = client.post("/admin/products/new", data={"name": "Fries", "price": "0", "category_id": "",
                                                            "image": ""})

        assert response.status_code == 400
        assert "Price is not valid" in response.text
        assert "Category is required" in response.text
        assert 'value="Fries"' in response.text

    def test_edit_product(self, client, products):
        burger = products["Burger"]
        assert 'value="Burger"' in client.get(f"/admin/products/{burger}/edit").text

        response = client.post(f"/admin/products/{burger}/edit", data={
            "name": "Big Burger", "price": "11", "category_id": "1", "image": "burger_01",
        }, follow_redirects=False)

        assert response.status_code == 303
        assert "Big Burger" in client.get("/admin/products").text

    def test_edit_missing_product(self, client):
        response = client.get("/admin/products/999/edit")

        assert response.status_code == 404
        assert "Product not found" in response.text
