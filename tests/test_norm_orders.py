import logging
from datetime import datetime, timezone

import pytest

from common.clients.orderspace import OrderspaceOrder
from common.clients.woocommerce import WooOrder
from common.norm.orders import convert_orderspace_order, convert_woo_order, title_case
from common.orders.types import Origin
from payloads import orderspace_payload, woo_payload


def test_convert_orderspace_order():
    order = convert_orderspace_order(OrderspaceOrder.model_validate(orderspace_payload()))

    assert order.id == "os_1"
    assert order.order_number == 1001
    assert order.customer == "Acme Trading"
    assert order.order_date_display == "Jan 3, 2024"
    assert order.deliver_on == "Jan 10, 2024"
    assert order.total == "£15.00"
    assert order.status == "New"
    assert order.origin is Origin.ORDERSPACE
    assert order.sort_key == datetime(2024, 1, 3, 9, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "overrides,expected",
    [
        ({}, "Acme Trading"),
        ({"company_name": ""}, "Jane Buyer"),
        ({"company_name": None, "billing_address": {}, "shipping_address": {"contact_name": "Dock Team"}}, "Dock Team"),
        ({"company_name": None, "billing_address": {}}, "orders@acme.test"),
        ({"company_name": None, "billing_address": {}, "email_addresses": {}}, ""),
    ],
)
def test_orderspace_customer_fallback_chain(overrides, expected):
    order = convert_orderspace_order(OrderspaceOrder.model_validate(orderspace_payload(**overrides)))
    assert order.customer == expected


def test_orderspace_missing_delivery_date_is_not_available():
    order = convert_orderspace_order(OrderspaceOrder.model_validate(orderspace_payload(delivery_date=None)))
    assert order.deliver_on == "N/A"


def test_convert_woo_order():
    order = convert_woo_order(WooOrder.model_validate(woo_payload()))

    assert order.id == "42"
    assert order.order_number == 42
    assert order.customer == "Sam Shopper"
    assert order.order_date_display == "Jan 2, 2024"
    assert order.deliver_on == "N/A"
    assert order.total == "$29.90"
    assert order.status == "Processing"
    assert order.origin is Origin.WOOCOMMERCE
    assert order.sort_key == datetime(2024, 1, 2, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "billing,expected",
    [
        ({"company": "Hat Co", "first_name": "Sam", "last_name": "Shopper"}, "Hat Co"),
        ({"first_name": "Sam", "last_name": ""}, "Sam"),
        ({"first_name": "", "last_name": "", "email": "sam@shop.test"}, "sam@shop.test"),
        ({}, ""),
    ],
)
def test_woo_customer_fallback_chain(billing, expected):
    order = convert_woo_order(WooOrder.model_validate(woo_payload(billing=billing)))
    assert order.customer == expected


def test_woo_order_number_prefers_numeric_number():
    order = convert_woo_order(WooOrder.model_validate(woo_payload(order_id=77, number="1077")))
    assert order.order_number == 1077
    assert order.id == "77"

    order = convert_woo_order(WooOrder.model_validate(woo_payload(order_id=77, number="WC-1077")))
    assert order.order_number == 77


def test_woo_unknown_currency_and_bad_total(caplog):
    with caplog.at_level(logging.WARNING):
        order = convert_woo_order(WooOrder.model_validate(woo_payload(currency="CHF", total="n/a")))
    assert order.total == "0.00 CHF"
    assert "Failed to parse WooCommerce total" in caplog.text


def test_unparseable_created_date_falls_back_to_now(caplog):
    started = datetime.now(timezone.utc)
    with caplog.at_level(logging.WARNING):
        order = convert_woo_order(WooOrder.model_validate(woo_payload(date_created="not a date")))

    assert order.sort_key >= started
    assert order.sort_key.year > 1970
    assert order.order_date_display == "not a date"
    assert "Failed to parse WooCommerce order date" in caplog.text


def test_serialized_order_uses_camel_case_and_hides_sort_key():
    order = convert_woo_order(WooOrder.model_validate(woo_payload()))
    data = order.model_dump(mode="json", by_alias=True)

    assert data["orderNumber"] == 42
    assert data["orderDateDisplay"] == "Jan 2, 2024"
    assert data["deliverOn"] == "N/A"
    assert data["origin"] == "WooCommerce"
    assert "sortKey" not in data and "sort_key" not in data


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("processing", "Processing"),
        ("on-hold", "On-Hold"),
        ("COMPLETED", "Completed"),
        ("part_dispatched", "Part_Dispatched"),
        ("", ""),
        (None, ""),
    ],
)
def test_title_case(raw, expected):
    assert title_case(raw) == expected


@pytest.mark.parametrize("number", ["²", "１２", "12a", ""])
def test_woo_non_ascii_digit_number_falls_back_to_id(number):
    order = convert_woo_order(WooOrder.model_validate(woo_payload(order_id=77, number=number)))
    assert order.order_number == 77


def test_null_source_fields_take_defaults():
    os_order = OrderspaceOrder.model_validate(orderspace_payload(created=None, gross_total=None, company_name=None))
    assert os_order.created == ""
    assert os_order.gross_total == 0.0
    assert convert_orderspace_order(os_order).customer == "Jane Buyer"

    woo = WooOrder.model_validate(woo_payload(total=None, billing=None, currency=None))
    converted = convert_woo_order(woo)
    assert converted.total == "0.00"
    assert converted.customer == ""
