"""Integration tests for the storefront API via TestClient."""

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from storefront.api.routes import router
from storefront.api.session import SHOPPER_COOKIE, get_session
from storefront.catalogue.client import set_catalog
from storefront.catalogue.client.http_adapter import HttpCatalog
from storefront.config import EngineSettings, set_settings
from storefront.delivery.pricing.port import FeeCalculationError, FeeErrorCode
from storefront.delivery.quote import PostalOption
from storefront.shared.fulfillment import FulfillmentMode
from storefront.stores import DeliveryPricing, get_directory


@pytest.fixture()
def client(make_store, make_unit, storage, pricing, gateway, catalog, clock):
    directory = get_directory()
    directory.register(
        make_store(
            "bistro",
            fulfillment_modes=(FulfillmentMode.DELIVERY, FulfillmentMode.PICKUP),
            time_format="12",
        )
    )
    directory.register(make_store("post-shop", delivery_pricing=DeliveryPricing.POSTAL))
    catalog.publish(
        "bistro",
        [
            make_unit("pizza", price=10.0),
            make_unit("cake", name="Cheesecake", price=5.0, stock=2, track_inventory=True),
        ],
    )
    catalog.publish("post-shop", [make_unit("book", name="Novel", price=12.0)])
    for business_id in ("bistro", "post-shop"):
        get_session(business_id, "shopper-1").clock = clock

    return TestClient(_app(), headers={"X-Shopper-Id": "shopper-1"})


def _app() -> FastAPI:
    app = FastAPI()
    app.include_router(router)
    return app


def _add(client, product_id="pizza", business_id="bistro", **extra):
    response = client.post(f"/storefront/{business_id}/cart/items", json={"product_id": product_id, **extra})
    assert response.status_code == 200
    return response.json()


def _ready_for_delivery(client):
    _add(client, quantity=2)
    client.put("/storefront/bistro/customer", json={"name": "Ana", "phone": "+355 69 123 4567"})
    client.post(
        "/storefront/bistro/delivery/quote",
        json={"address": "Rruga e Kavajes 10, Tirana", "latitude": 41.32, "longitude": 19.81},
    )


class TestCartAPI:
    def test_empty_cart(self, client):
        response = client.get("/storefront/bistro/cart")
        assert response.status_code == 200
        assert response.json() == {"business_id": "bistro", "items": [], "subtotal": 0.0, "item_count": 0, "savings": 0.0}

    def test_add_with_modifiers(self, client):
        body = _add(client, quantity=2, modifiers=[{"id": "basil", "name": "Basil", "price": 0.5}])

        assert body["status"] == "Ok"
        assert body["cart"]["subtotal"] == 21.0
        assert body["cart"]["items"][0]["modifiers"][0]["id"] == "basil"

    def test_stock_warning(self, client):
        _add(client, "cake", quantity=2)
        body = _add(client, "cake")

        assert body["status"] == "Warning"
        assert body["message"] == "Out of stock"
        assert body["cart"]["item_count"] == 2

    def test_update_and_remove(self, client):
        line_id = _add(client, quantity=3)["line_id"]

        response = client.put(f"/storefront/bistro/cart/items/{line_id}", json={"quantity": 1})
        assert response.json()["cart"]["subtotal"] == 10.0

        response = client.delete(f"/storefront/bistro/cart/items/{line_id}")
        assert response.json()["cart"]["items"] == []

    def test_increment(self, client):
        line_id = _add(client, "cake")["line_id"]
        client.post(f"/storefront/bistro/cart/items/{line_id}/increment")
        body = client.post(f"/storefront/bistro/cart/items/{line_id}/increment").json()

        assert body["status"] == "Warning"
        assert body["quantity"] == 2

    def test_unknown_line(self, client):
        response = client.delete("/storefront/bistro/cart/items/nope")
        assert response.status_code == 400
        assert response.json()["detail"] == {"line_id": ["Item not found in cart"]}

    def test_unknown_product(self, client):
        response = client.post("/storefront/bistro/cart/items", json={"product_id": "sushi"})
        assert response.status_code == 404

    def test_unknown_store(self, client):
        assert client.get("/storefront/ghost/cart").status_code == 404

    def test_tenants_are_isolated(self, client):
        _add(client)

        assert client.get("/storefront/post-shop/cart").json()["items"] == []
        assert len(client.get("/storefront/bistro/cart").json()["items"]) == 1

    def test_availability(self, client):
        _add(client, "cake", quantity=2)

        flags = {f["product_id"]: f["available"] for f in client.get("/storefront/bistro/availability").json()}

        assert flags == {"pizza": True, "cake": False}

    def test_sync_reports_adjusted_lines(self, client, catalog, make_unit):
        _add(client, "cake", quantity=2)
        catalog.publish("bistro", [make_unit("cake", name="Cheesecake", price=5.0, stock=1, track_inventory=True)])

        body = client.post("/storefront/bistro/cart/sync").json()

        assert len(body) == 1
        assert body[0]["message"] == "Only 1 of Cheesecake available"


class TestSlotsAPI:
    def test_slots_use_store_time_format(self, client):
        body = client.get("/storefront/bistro/slots", params={"day": "2026-10-20", "context": "pickup"}).json()

        assert body["slots"][0] == {"value": "09:00", "label": "9:00 AM"}
        assert body["next_available_day"] == "2026-10-20"

    def test_default_context_is_current_fulfillment(self, client):
        body = client.get("/storefront/bistro/slots", params={"day": "2026-10-19"}).json()

        assert body["context"] == "delivery"
        assert body["slots"][0]["value"] == "13:00"

    def test_past_day_suggests_next_available(self, client):
        body = client.get("/storefront/bistro/slots", params={"day": "2026-10-18"}).json()

        assert body["slots"] == []
        assert body["next_available_day"] == "2026-10-19"

    def test_unknown_context(self, client):
        response = client.get("/storefront/bistro/slots", params={"day": "2026-10-20", "context": "takeaway"})
        assert response.status_code == 400

    def test_schedule_a_slot(self, client):
        response = client.put("/storefront/bistro/schedule", json={"mode": "scheduled", "day": "2026-10-20", "time": "10:30"})

        assert response.json() == {"mode": "scheduled", "slot": "2026-10-20T10:30"}

    def test_schedule_unavailable_slot(self, client):
        response = client.put("/storefront/bistro/schedule", json={"mode": "scheduled", "day": "2026-10-20", "time": "22:00"})
        assert response.status_code == 400


class TestDeliveryAPI:
    def test_quote(self, client):
        _ready_for_delivery(client)

        body = client.get("/storefront/bistro/checkout").json()

        assert body["can_submit"] is True
        assert (body["subtotal"], body["delivery_fee"], body["total"]) == (20.0, 3.0, 23.0)

    def test_outside_area(self, client, pricing):
        pricing.configure(
            error=FeeCalculationError(FeeErrorCode.OUTSIDE_DELIVERY_AREA, "Address is outside delivery area (maximum 5km)")
        )

        body = client.post(
            "/storefront/bistro/delivery/quote",
            json={"address": "Durres", "latitude": 41.32, "longitude": 19.45},
        ).json()

        assert body["quote"]["status"] == "OutsideArea"
        assert body["quote"]["max_distance"] == 5.0
        assert body["fee"] == 0

    def test_invalid_coordinates(self, client):
        response = client.post(
            "/storefront/bistro/delivery/quote", json={"address": "Nowhere", "latitude": 200, "longitude": 19.45}
        )
        assert response.status_code == 400

    def test_switch_to_pickup(self, client):
        _ready_for_delivery(client)

        body = client.put("/storefront/bistro/fulfillment", json={"mode": "pickup"}).json()

        assert body == {"fulfillment": "pickup", "quote": None, "fee": 0.0}

    def test_unsupported_fulfillment(self, client):
        assert client.put("/storefront/bistro/fulfillment", json={"mode": "dineIn"}).status_code == 400

    def test_postal_flow(self, client, pricing):
        pricing.publish_postal("AL", "Tirana", [PostalOption(id="std", carrier_name="Albanian Post", price=4.0)])

        options = client.get(
            "/storefront/post-shop/delivery/postal-options", params={"country": "AL", "city": "Tirana"}
        ).json()
        assert options == [{"id": "std", "carrier_name": "Albanian Post", "price": 4.0, "estimated_time": None}]

        body = client.post("/storefront/post-shop/delivery/postal-options/std/select").json()
        assert body["fee"] == 4.0
        assert body["quote"]["zone"] == "Albanian Post"


class TestCheckoutAPI:
    def test_readiness_reasons(self, client):
        body = client.get("/storefront/bistro/checkout").json()

        assert body["can_submit"] is False
        assert body["reasons"][0] == "Your cart is empty"

    def test_submit(self, client, gateway):
        _ready_for_delivery(client)

        response = client.post("/storefront/bistro/checkout")

        assert response.status_code == 201
        assert response.json()["order_number"] == "ORD-0001"
        assert gateway.submissions[0]["payload"]["deliveryType"] == "delivery"
        assert client.get("/storefront/bistro/cart").json()["items"] == []

    def test_submit_rejected(self, client, gateway):
        _ready_for_delivery(client)
        client.post("/storefront/gateway/configure", json={"should_succeed": False, "failure_reason": "Kitchen closed"})

        response = client.post("/storefront/bistro/checkout")

        assert response.status_code == 400
        assert response.json()["detail"] == "Kitchen closed"
        assert len(client.get("/storefront/bistro/cart").json()["items"]) == 1

    def test_submit_not_ready(self, client, gateway):
        response = client.post("/storefront/bistro/checkout")

        assert response.status_code == 400
        assert gateway.submissions == []


class TestGatewayConfigureAPI:
    def test_blocked_in_production(self, client, gateway):
        set_settings(EngineSettings(_env_file=None, env="production"))
        response = client.post("/storefront/gateway/configure", json={"should_succeed": False})
        assert response.status_code == 403
        assert gateway.should_succeed is True


class TestShopperSessions:
    def test_shoppers_of_one_store_have_separate_carts(self, client):
        other = TestClient(_app(), headers={"X-Shopper-Id": "shopper-2"})
        _add(client, quantity=2)
        _add(other, "cake")

        mine = client.get("/storefront/bistro/cart").json()["items"]
        theirs = other.get("/storefront/bistro/cart").json()["items"]

        assert [(i["product_id"], i["quantity"]) for i in mine] == [("pizza", 2)]
        assert [(i["product_id"], i["quantity"]) for i in theirs] == [("cake", 1)]

    def test_customer_details_are_not_shared(self, client):
        other = TestClient(_app(), headers={"X-Shopper-Id": "shopper-2"})
        _ready_for_delivery(client)

        body = other.get("/storefront/bistro/checkout").json()

        assert body["can_submit"] is False
        assert "Please enter your name" in body["reasons"]

    def test_submitting_leaves_other_carts_alone(self, client):
        other = TestClient(_app(), headers={"X-Shopper-Id": "shopper-2"})
        _add(other, "cake")
        _ready_for_delivery(client)

        assert client.post("/storefront/bistro/checkout").status_code == 201

        assert len(other.get("/storefront/bistro/cart").json()["items"]) == 1

    def test_cookie_is_issued_without_header(self, client):
        anonymous = TestClient(_app())

        response = anonymous.get("/storefront/bistro/cart")

        assert response.status_code == 200
        shopper_id = response.cookies[SHOPPER_COOKIE]
        _add(anonymous)
        assert get_session("bistro", shopper_id).cart.totals().item_count == 1
        assert client.get("/storefront/bistro/cart").json()["items"] == []


class TestCatalogOutage:
    @pytest.fixture()
    def broken_catalog(self):
        def _refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        set_catalog(HttpCatalog("http://catalog.test/api", 1.0, transport=httpx.MockTransport(_refuse)))

    def test_add_item_is_unavailable(self, client, broken_catalog):
        response = client.post("/storefront/bistro/cart/items", json={"product_id": "pizza"})

        assert response.status_code == 503
        assert response.json()["detail"] == "Catalog is temporarily unavailable"

    def test_availability_is_unavailable(self, client, broken_catalog):
        assert client.get("/storefront/bistro/availability").status_code == 503

    def test_sync_keeps_the_cart(self, client, catalog, make_unit):
        _add(client, quantity=2)

        def _fail(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="boom")

        set_catalog(HttpCatalog("http://catalog.test/api", 1.0, transport=httpx.MockTransport(_fail)))
        response = client.post("/storefront/bistro/cart/sync")

        assert response.status_code == 503
        assert client.get("/storefront/bistro/cart").json()["item_count"] == 2
