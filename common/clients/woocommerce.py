"""Async client for the WooCommerce REST API (``/wp-json/wc/v3``).

Every request is signed with the store's consumer key/secret, either as HTTP
basic auth or, for stores not served over HTTPS, as query parameters.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx
from pydantic import Field

from common.clients.base import (
    DEFAULT_TIMEOUT_SECONDS,
    BaseClient,
    OrdersPage,
    PaginationInfo,
    SourceModel,
    decode_json,
    decode_order,
    decode_orders,
)

LOG = logging.getLogger(__name__)

SUBSCRIPTION_RENEWAL_KEY = "_subscription_renewal"
SUBSCRIPTION_SCHEME_KEY = "_wcsatt_scheme"


class MetaData(SourceModel):
    id: Optional[int] = None
    key: str = ""
    value: Any = None


class WooAddress(SourceModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company: Optional[str] = None
    address_1: Optional[str] = None
    address_2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postcode: Optional[str] = None
    country: Optional[str] = None
    # only present on billing addresses
    email: Optional[str] = None
    phone: Optional[str] = None


class LineItemTax(SourceModel):
    id: Optional[int] = None
    total: Optional[str] = None
    subtotal: Optional[str] = None


class LineItem(SourceModel):
    id: Optional[int] = None
    name: Optional[str] = None
    product_id: Optional[int] = None
    variation_id: Optional[int] = None
    quantity: int = 0
    tax_class: Optional[str] = None
    subtotal: Optional[str] = None
    subtotal_tax: Optional[str] = None
    total: Optional[str] = None
    total_tax: Optional[str] = None
    taxes: List[LineItemTax] = []
    meta_data: List[MetaData] = []
    sku: Optional[str] = None
    price: Optional[float] = None


class TaxLine(SourceModel):
    id: Optional[int] = None
    rate_code: Optional[str] = None
    rate_id: Optional[int] = None
    label: Optional[str] = None
    compound: bool = False
    tax_total: Optional[str] = None
    shipping_tax_total: Optional[str] = None
    meta_data: List[MetaData] = []


class ShippingLine(SourceModel):
    id: Optional[int] = None
    method_title: Optional[str] = None
    method_id: Optional[str] = None
    total: Optional[str] = None
    total_tax: Optional[str] = None
    meta_data: List[MetaData] = []


class FeeLine(SourceModel):
    id: Optional[int] = None
    name: Optional[str] = None
    tax_class: Optional[str] = None
    tax_status: Optional[str] = None
    total: Optional[str] = None
    total_tax: Optional[str] = None
    meta_data: List[MetaData] = []


class CouponLine(SourceModel):
    id: Optional[int] = None
    code: Optional[str] = None
    discount: Optional[str] = None
    discount_tax: Optional[str] = None
    meta_data: List[MetaData] = []


class Refund(SourceModel):
    id: Optional[int] = None
    reason: Optional[str] = None
    total: Optional[str] = None


class WooOrder(SourceModel):
    id: int
    parent_id: Optional[int] = None
    number: str = ""
    order_key: Optional[str] = None
    created_via: Optional[str] = None
    version: Optional[str] = None
    status: str = ""
    currency: str = ""
    date_created: str = ""
    date_created_gmt: Optional[str] = None
    date_modified: Optional[str] = None
    date_modified_gmt: Optional[str] = None
    discount_total: Optional[str] = None
    discount_tax: Optional[str] = None
    shipping_total: Optional[str] = None
    shipping_tax: Optional[str] = None
    cart_tax: Optional[str] = None
    total: str = "0"
    total_tax: Optional[str] = None
    prices_include_tax: bool = False
    customer_id: Optional[int] = None
    customer_note: Optional[str] = None
    billing: WooAddress = Field(default_factory=WooAddress)
    shipping: WooAddress = Field(default_factory=WooAddress)
    payment_method: Optional[str] = None
    payment_method_title: Optional[str] = None
    transaction_id: Optional[str] = None
    date_paid: Optional[str] = None
    date_paid_gmt: Optional[str] = None
    date_completed: Optional[str] = None
    date_completed_gmt: Optional[str] = None
    cart_hash: Optional[str] = None
    meta_data: List[MetaData] = []
    line_items: List[LineItem] = []
    tax_lines: List[TaxLine] = []
    shipping_lines: List[ShippingLine] = []
    fee_lines: List[FeeLine] = []
    coupon_lines: List[CouponLine] = []
    refunds: List[Refund] = []
    links: Dict[str, Any] = Field(default_factory=dict, alias="_links")


def _header_int(headers: httpx.Headers, name: str) -> Optional[int]:
    raw = headers.get(name)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def is_subscription_order(order: WooOrder) -> bool:
    if order.created_via == "subscription":
        return True
    if any(meta.key == SUBSCRIPTION_RENEWAL_KEY for meta in order.meta_data):
        return True
    return any(
        meta.key == SUBSCRIPTION_SCHEME_KEY
        for item in order.line_items
        for meta in item.meta_data
    )


def get_subscription_renewal_id(order: WooOrder) -> Optional[int]:
    for meta in order.meta_data:
        if meta.key != SUBSCRIPTION_RENEWAL_KEY:
            continue
        value = meta.value
        if isinstance(value, bool):
            continue
        if isinstance(value, (int, float)):
            return int(value)
        if isinstance(value, str) and value.strip().isdigit() and int(value) > 0:
            return int(value)
    return None


def get_subscription_scheme(order: WooOrder) -> Optional[str]:
    for item in order.line_items:
        for meta in item.meta_data:
            if meta.key == SUBSCRIPTION_SCHEME_KEY and isinstance(meta.value, str):
                return meta.value
    return None


class WooCommerceClient(BaseClient):
    def __init__(
        self,
        base_url: str,
        consumer_key: str,
        consumer_secret: str,
        *,
        query_string_auth: bool = False,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        auth = None if query_string_auth else (consumer_key, consumer_secret)
        super().__init__(base_url, timeout=timeout, auth=auth)
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.query_string_auth = query_string_auth

    def build_url(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> str:
        if self.query_string_auth:
            params = {
                **(params or {}),
                "consumer_key": self.consumer_key,
                "consumer_secret": self.consumer_secret,
            }
        return super().build_url(endpoint, params)

    async def list_orders(
        self,
        *,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
        offset: Optional[int] = None,
        status: Optional[str] = None,
        customer: Optional[str] = None,
        product: Optional[str] = None,
        search: Optional[str] = None,
        after: Optional[str] = None,
        before: Optional[str] = None,
        modified_after: Optional[str] = None,
        orderby: Optional[str] = None,
        order: Optional[str] = None,
        include: Optional[str] = None,
        exclude: Optional[str] = None,
        params: Optional[Mapping[str, str]] = None,
    ) -> OrdersPage[WooOrder]:
        query: Dict[str, Any] = {
            "page": page if page and page > 0 else None,
            "per_page": per_page if per_page and per_page > 0 else None,
            "offset": offset if offset and offset > 0 else None,
            "status": status,
            "customer": customer,
            "product": product,
            "search": search,
            "after": after,
            "before": before,
            "modified_after": modified_after,
            "orderby": orderby,
            "order": order,
            "include": include,
            "exclude": exclude,
        }
        query.update(params or {})

        resp = await self._get("orders", query)
        orders = decode_orders(decode_json(resp), WooOrder)

        total = _header_int(resp.headers, "X-WP-Total")
        total_pages = _header_int(resp.headers, "X-WP-TotalPages")
        current = page or 1
        if total_pages is not None:
            has_more = current < total_pages
        else:
            has_more = bool(per_page) and len(orders) == per_page

        pagination = PaginationInfo(
            limit=per_page or 0,
            page=current,
            total=total,
            total_pages=total_pages,
            has_more=has_more,
        )
        return OrdersPage[WooOrder](orders=orders, pagination=pagination, headers=dict(resp.headers))

    async def get_order(self, order_id: int) -> WooOrder:
        LOG.info("Fetching WooCommerce order %s", order_id)
        resp = await self._get(f"orders/{order_id}")
        return decode_order(decode_json(resp), WooOrder)

    async def get_recent_orders(self, count: int) -> List[WooOrder]:
        page = await self.list_orders(page=1, per_page=count, orderby="date", order="desc")
        return page.orders

    async def get_last_10_orders(self) -> List[WooOrder]:
        return await self.get_recent_orders(10)

    async def list_subscription_orders(self, **filters: Any) -> OrdersPage[WooOrder]:
        # pagination still describes the unfiltered page
        page = await self.list_orders(**filters)
        page.orders = [o for o in page.orders if is_subscription_order(o)]
        return page

    async def list_subscription_renewals(self, **filters: Any) -> OrdersPage[WooOrder]:
        page = await self.list_orders(**filters)
        page.orders = [o for o in page.orders if o.created_via == "subscription"]
        return page
