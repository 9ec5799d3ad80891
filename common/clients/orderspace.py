"""Async client for the Orderspace REST API.

Orderspace authenticates with OAuth2 client credentials. The bearer token is
cached on the client's own :class:`TokenSession` and refreshed lazily, a little
before the identity server says it expires. Lists are cursor paginated with
``limit`` / ``starting_after``.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

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
from common.clients.errors import APIError, AuthError, DecodeError

LOG = logging.getLogger(__name__)

TOKEN_URL = "https://identity.orderspace.com/oauth/token"
TOKEN_SAFETY_MARGIN = timedelta(seconds=30)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class OrderEmailAddresses(SourceModel):
    orders: Optional[str] = None
    dispatches: Optional[str] = None
    invoices: Optional[str] = None


class OrderAddress(SourceModel):
    company_name: Optional[str] = None
    contact_name: Optional[str] = None
    line1: Optional[str] = None
    line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


class GroupingCategory(SourceModel):
    id: Optional[str] = None
    name: Optional[str] = None


class OrderLine(SourceModel):
    id: Optional[str] = None
    sku: Optional[str] = None
    name: Optional[str] = None
    options: Optional[str] = None
    grouping_category: Optional[GroupingCategory] = None
    shipping: bool = False
    quantity: int = 0
    unit_price: float = 0.0
    sub_total: float = 0.0
    tax_rate_id: Optional[str] = None
    tax_name: Optional[str] = None
    tax_rate: float = 0.0
    tax_amount: float = 0.0
    preorder_window_id: Optional[str] = None
    on_hold: bool = False
    invoiced: int = 0
    paid: int = 0
    dispatched: int = 0


class OrderspaceOrder(SourceModel):
    id: str
    number: int = 0
    created: str = ""
    status: str = ""
    customer_id: Optional[str] = None
    company_name: Optional[str] = None
    phone: Optional[str] = None
    email_addresses: OrderEmailAddresses = Field(default_factory=OrderEmailAddresses)
    created_by: Optional[str] = None
    delivery_date: Optional[str] = None
    reference: Optional[str] = None
    internal_note: Optional[str] = None
    customer_po_number: Optional[str] = None
    customer_note: Optional[str] = None
    standing_order_id: Optional[str] = None
    shipping_type: Optional[str] = None
    shipping_address: OrderAddress = Field(default_factory=OrderAddress)
    billing_address: OrderAddress = Field(default_factory=OrderAddress)
    order_lines: List[OrderLine] = []
    currency: str = ""
    net_total: float = 0.0
    gross_total: float = 0.0


class TokenSession:
    """Bearer token cache owned by a single :class:`OrderspaceClient`."""

    def __init__(self) -> None:
        self.access_token: Optional[str] = None
        self.expires_at: Optional[datetime] = None
        self.lock = asyncio.Lock()

    def is_valid(self, now: datetime) -> bool:
        return bool(self.access_token) and self.expires_at is not None and now < self.expires_at

    def store(self, access_token: str, expires_in: int, now: datetime) -> None:
        self.access_token = access_token
        self.expires_at = now + timedelta(seconds=expires_in) - TOKEN_SAFETY_MARGIN

    def clear(self) -> None:
        self.access_token = None
        self.expires_at = None


class OrderspaceClient(BaseClient):
    def __init__(
        self,
        base_url: str,
        client_id: str,
        client_secret: str,
        *,
        token_url: str = TOKEN_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(base_url, timeout=timeout)
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        self.session = TokenSession()

    async def _fetch_token(self) -> None:
        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "grant_type": "client_credentials",
        }
        try:
            resp = await self.http.post(self.token_url, data=data)
        except httpx.HTTPError as exc:
            raise AuthError(f"failed to get access token: {exc}") from exc

        if resp.status_code != 200:
            raise AuthError(f"token request failed with status {resp.status_code}: {resp.text}")

        try:
            body = resp.json()
        except ValueError as exc:
            raise AuthError("failed to parse token response") from exc

        token = body.get("access_token") if isinstance(body, dict) else None
        if not token:
            raise AuthError("token response did not include an access_token")

        try:
            expires_in = int(body.get("expires_in") or 0)
        except (TypeError, ValueError) as exc:
            raise AuthError(f"invalid expires_in in token response: {body.get('expires_in')!r}") from exc

        self.session.store(token, expires_in, _now())
        LOG.info("Orderspace access token refreshed, expires at %s", self.session.expires_at)

    async def ensure_valid_token(self) -> str:
        async with self.session.lock:
            if not self.session.is_valid(_now()):
                await self._fetch_token()
            return self.session.access_token  # type: ignore[return-value]

    async def _request_headers(self) -> Dict[str, str]:
        token = await self.ensure_valid_token()
        return {"Authorization": f"Bearer {token}"}

    async def _get(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> httpx.Response:
        try:
            return await super()._get(endpoint, params)
        except APIError as exc:
            # A revoked token is dropped so the next call acquires a fresh one.
            if exc.status_code == 401:
                self.session.clear()
            raise

    async def list_orders(
        self,
        *,
        limit: Optional[int] = None,
        starting_after: Optional[str] = None,
        status: Optional[str] = None,
        customer_id: Optional[str] = None,
        created_since: Optional[str] = None,
        created_until: Optional[str] = None,
        updated_since: Optional[str] = None,
        updated_until: Optional[str] = None,
        params: Optional[Mapping[str, str]] = None,
    ) -> OrdersPage[OrderspaceOrder]:
        query: Dict[str, Any] = {
            "limit": limit if limit and limit > 0 else None,
            "starting_after": starting_after,
            "status": status,
            "customer_id": customer_id,
            "created_since": created_since,
            "created_until": created_until,
            "updated_since": updated_since,
            "updated_until": updated_until,
        }
        query.update(params or {})

        resp = await self._get("orders", query)
        orders = decode_orders(decode_json(resp), OrderspaceOrder)

        pagination = PaginationInfo(starting_after=starting_after)
        if limit and limit > 0:
            pagination.limit = limit
            pagination.has_more = len(orders) == limit

        return OrdersPage[OrderspaceOrder](
            orders=orders,
            pagination=pagination,
            headers=dict(resp.headers),
        )

    async def get_order(self, order_id: str) -> OrderspaceOrder:
        LOG.info("Fetching Orderspace order %s", order_id)
        resp = await self._get(f"orders/{quote(order_id, safe='')}")
        data = decode_json(resp)
        if data is None:
            raise DecodeError(f"no data in response for order {order_id}")
        return decode_order(data, OrderspaceOrder)

    async def get_all_orders(self, limit: int, starting_after: Optional[str] = None) -> OrdersPage[OrderspaceOrder]:
        return await self.list_orders(limit=limit, starting_after=starting_after)

    async def get_orders_by_status(
        self, status: str, limit: int, starting_after: Optional[str] = None
    ) -> OrdersPage[OrderspaceOrder]:
        return await self.list_orders(status=status, limit=limit, starting_after=starting_after)

    async def get_orders_by_customer(
        self, customer_id: str, limit: int, starting_after: Optional[str] = None
    ) -> OrdersPage[OrderspaceOrder]:
        return await self.list_orders(customer_id=customer_id, limit=limit, starting_after=starting_after)

    async def get_orders_created_since(
        self, created_since: str, limit: int, starting_after: Optional[str] = None
    ) -> OrdersPage[OrderspaceOrder]:
        return await self.list_orders(created_since=created_since, limit=limit, starting_after=starting_after)

    async def get_orders_in_date_range(
        self,
        created_since: str,
        created_until: str,
        limit: int,
        starting_after: Optional[str] = None,
    ) -> OrdersPage[OrderspaceOrder]:
        return await self.list_orders(
            created_since=created_since,
            created_until=created_until,
            limit=limit,
            starting_after=starting_after,
        )

    async def get_next_page(
        self, last_id: str, limit: int, params: Optional[Mapping[str, str]] = None
    ) -> OrdersPage[OrderspaceOrder]:
        return await self.list_orders(limit=limit, starting_after=last_id, params=params)

    async def get_recent_orders(self, count: int) -> List[OrderspaceOrder]:
        # Orderspace lists newest orders first.
        page = await self.get_all_orders(count)
        return page.orders

    async def get_last_10_orders(self) -> List[OrderspaceOrder]:
        return await self.get_recent_orders(10)
