import logging
import re
from decimal import Decimal
from typing import Iterable, Optional

from common.clients.orderspace import OrderspaceOrder
from common.clients.woocommerce import WooOrder
from common.norm.amounts import format_currency, normalize_amount
from common.norm.dates import (
    NOT_AVAILABLE,
    ORDERSPACE_CREATED_FORMAT,
    WOO_CREATED_FORMAT,
    delivery_display,
    sort_key_and_display,
)
from common.orders.types import Order, Origin

LOG = logging.getLogger(__name__)

_WORD_RE = re.compile(r"[^\W\d_]+(?:'[^\W\d_]+)?")


def title_case(raw: Optional[str]) -> str:
    if not raw:
        return ""
    return _WORD_RE.sub(lambda m: m.group(0).capitalize(), raw.strip())


def first_present(candidates: Iterable[Optional[str]]) -> str:
    for value in candidates:
        if value and value.strip():
            return value.strip()
    return ""


def convert_orderspace_order(order: OrderspaceOrder) -> Order:
    customer = first_present(
        (
            order.company_name,
            order.billing_address.contact_name,
            order.shipping_address.contact_name,
            order.email_addresses.orders,
        )
    )
    sort_key, order_date = sort_key_and_display(order.created, ORDERSPACE_CREATED_FORMAT, "Orderspace")

    return Order(
        id=order.id,
        order_number=order.number,
        customer=customer,
        order_date_display=order_date,
        deliver_on=delivery_display(order.delivery_date),
        total=format_currency(normalize_amount(order.gross_total) or Decimal(0), order.currency),
        status=title_case(order.status),
        origin=Origin.ORDERSPACE,
        sort_key=sort_key,
    )


def convert_woo_order(order: WooOrder) -> Order:
    billing = order.billing
    full_name = " ".join(p.strip() for p in (billing.first_name, billing.last_name) if p and p.strip())
    customer = first_present((billing.company, full_name, billing.email))

    total = normalize_amount(order.total)
    if total is None:
        LOG.warning("Failed to parse WooCommerce total %r for order %s", order.total, order.id)
        total = Decimal(0)

    number = order.number.strip()
    order_number = int(number) if number.isascii() and number.isdigit() else order.id

    sort_key, order_date = sort_key_and_display(order.date_created, WOO_CREATED_FORMAT, "WooCommerce")

    return Order(
        id=str(order.id),
        order_number=order_number,
        customer=customer,
        order_date_display=order_date,
        deliver_on=NOT_AVAILABLE,
        total=format_currency(total, order.currency),
        status=title_case(order.status),
        origin=Origin.WOOCOMMERCE,
        sort_key=sort_key,
    )
