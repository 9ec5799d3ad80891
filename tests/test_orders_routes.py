from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from api.app.main import app
from api.app.routers.orders import get_order_service
from common.clients.errors import APIError
from common.clients.orderspace import OrderspaceOrder
from common.clients.woocommerce import WooOrder
from common.orders.service import InvalidOrderIdError, parse_origin
from common.orders.types import Order, Origin, SourceResult, UnifiedOrders
from payloads import orderspace_payload, woo_payload


def _order(origin, order_id, day):
    return Order(
        id=order_id,
        order_number=day,
        customer="Acme Trading",
        order_date_display=f"Jan {day}, 2024",
        deliver_on="N/A",
        total="£10.00",
        status="New",
        origin=origin,
        sort_key=datetime(2024, 1, day, tzinfo=timezone.utc),
    )


class FakeService:
    def __init__(self, report=None, order=None, error=None):
        self.report = report
        self.order = order
        self.error = error
        self.lookups = []

    async def fetch_unified_report(self):
        return self.report

    async def get_order(self, origin, order_id):
        self.lookups.append((origin, order_id))
        parse_origin(origin)
        if self.error:
            raise self.error
        return self.order


@pytest.fixture
def client_for():
    def _make(service):
        app.dependency_overrides[get_order_service] = lambda: service
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


def _report():
    orders = [_order(Origin.ORDERSPACE, "os_3", 3), _order(Origin.WOOCOMMERCE, "2", 2)]
    return UnifiedOrders(
        orders=orders,
        sources=[
            SourceResult(origin=Origin.ORDERSPACE, orders=orders[:1]),
            SourceResult(origin=Origin.WOOCOMMERCE, orders=orders[1:]),
        ],
    )


def test_list_orders_json(client_for):
    client = client_for(FakeService(report=_report()))
    r = client.get("/orders", headers={"Content-Type": "application/json"})

    assert r.status_code == 200
    data = r.json()
    assert [(o["origin"], o["id"]) for o in data] == [("Orderspace", "os_3"), ("WooCommerce", "2")]
    assert "sortKey" not in data[0]
    assert data[0]["orderDateDisplay"] == "Jan 3, 2024"


def test_list_orders_json_via_accept_header(client_for):
    client = client_for(FakeService(report=_report()))
    r = client.get("/orders", headers={"Accept": "application/json"})
    assert r.status_code == 200
    assert isinstance(r.json(), list)


def test_list_orders_html_reports_failed_source(client_for):
    report = UnifiedOrders(
        orders=[_order(Origin.WOOCOMMERCE, "2", 2)],
        sources=[
            SourceResult(origin=Origin.ORDERSPACE, error="token request failed with status 401"),
            SourceResult(origin=Origin.WOOCOMMERCE, orders=[_order(Origin.WOOCOMMERCE, "2", 2)]),
        ],
    )
    client = client_for(FakeService(report=report))
    r = client.get("/orders", headers={"Accept": "text/html"})

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert "Orderspace orders could not be loaded" in r.text
    assert "/orders/WooCommerce/2" in r.text


def test_list_orders_html_empty(client_for):
    client = client_for(FakeService(report=UnifiedOrders(orders=[], sources=[])))
    r = client.get("/orders")
    assert r.status_code == 200
    assert "No orders to show." in r.text


def test_single_order_unknown_origin_is_bad_request(client_for):
    client = client_for(FakeService())
    r = client.get("/orders/Shopify/1")
    assert r.status_code == 400


def test_single_order_bad_id_is_bad_request(client_for):
    client = client_for(FakeService(error=InvalidOrderIdError("invalid WooCommerce order id: 'abc'")))
    r = client.get("/orders/WooCommerce/abc")
    assert r.status_code == 400


def test_single_order_upstream_failure_is_server_error(client_for):
    client = client_for(FakeService(error=APIError("Order not found", status_code=404)))
    r = client.get("/orders/Orderspace/os_x", headers={"Accept": "application/json"})

    assert r.status_code == 500
    assert "API error 404: Order not found" in r.json()["detail"]


def test_single_woo_order_json_passthrough(client_for):
    service = FakeService(order=WooOrder.model_validate(woo_payload(42)))
    client = client_for(service)
    r = client.get("/orders/WooCommerce/42", headers={"Content-Type": "application/json"})

    assert r.status_code == 200
    assert r.json()["id"] == 42
    assert r.json()["billing"]["email"] == "sam@shop.test"
    assert service.lookups == [("WooCommerce", "42")]


def test_single_orderspace_order_html(client_for):
    service = FakeService(order=OrderspaceOrder.model_validate(orderspace_payload("os_9")))
    client = client_for(service)
    r = client.get("/orders/Orderspace/os_9")

    assert r.status_code == 200
    assert "CAP-1" in r.text
    assert "Acme Trading" in r.text
