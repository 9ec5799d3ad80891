"""Fan-out/fan-in aggregation of recent orders from every configured source.

Each source is fetched and normalized in its own task. Every task hands back a
:class:`SourceResult`, so a failing source shows up as a tagged failure rather
than as an empty list, and the coordinating coroutine merges the results without
sharing any mutable state between tasks.
"""
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Protocol, Sequence, Union

from pydantic import BaseModel

from common.clients.base import DEFAULT_TIMEOUT_SECONDS
from common.clients.errors import SourceError
from common.clients.orderspace import TOKEN_URL, OrderspaceClient, OrderspaceOrder
from common.clients.woocommerce import WooCommerceClient, WooOrder
from common.norm.orders import convert_orderspace_order, convert_woo_order
from common.orders.types import Order, Origin, SourceResult, UnifiedOrders

LOG = logging.getLogger(__name__)

DEFAULT_RECENT_COUNT = 10


class OrderLookupError(ValueError):
    pass


class InvalidOriginError(OrderLookupError):
    pass


class InvalidOrderIdError(OrderLookupError):
    pass


class OrderSource(Protocol):
    origin: Origin

    async def fetch_recent_orders(self, count: int) -> List[Order]:
        ...


class OrderspaceSource:
    origin = Origin.ORDERSPACE

    def __init__(self, client: OrderspaceClient) -> None:
        self.client = client

    async def fetch_recent_orders(self, count: int) -> List[Order]:
        raw = await self.client.get_recent_orders(count)
        return [convert_orderspace_order(o) for o in raw]


class WooCommerceSource:
    origin = Origin.WOOCOMMERCE

    def __init__(self, client: WooCommerceClient) -> None:
        self.client = client

    async def fetch_recent_orders(self, count: int) -> List[Order]:
        raw = await self.client.get_recent_orders(count)
        return [convert_woo_order(o) for o in raw]


def parse_origin(value: str) -> Origin:
    try:
        return Origin(value)
    except ValueError:
        raise InvalidOriginError(f"invalid or missing origin: {value!r}") from None


class OrderAggregator:
    def __init__(self, sources: Sequence[OrderSource], recent_count: int = DEFAULT_RECENT_COUNT) -> None:
        self.sources = list(sources)
        self.recent_count = recent_count

    async def _collect(self, source: OrderSource) -> SourceResult:
        try:
            orders = await source.fetch_recent_orders(self.recent_count)
        except SourceError as exc:
            LOG.error("fetching %s orders failed: %s", source.origin.value, exc)
            return SourceResult(origin=source.origin, error=str(exc))
        except Exception as exc:
            LOG.exception("unexpected failure fetching %s orders", source.origin.value)
            return SourceResult(origin=source.origin, error=f"unexpected error: {exc}")

        LOG.info("fetched %s orders from %s", len(orders), source.origin.value)
        return SourceResult(origin=source.origin, orders=orders)

    async def fetch_unified_report(self) -> UnifiedOrders:
        results = await asyncio.gather(*(self._collect(s) for s in self.sources))

        merged: List[Order] = []
        for result in results:
            merged.extend(result.orders)
        merged.sort(key=lambda o: o.sort_key, reverse=True)

        return UnifiedOrders(orders=merged, sources=list(results))

    async def fetch_unified(self) -> List[Order]:
        report = await self.fetch_unified_report()
        return report.orders


class OrderServiceConfig(BaseModel):
    orderspace_base_url: str
    orderspace_client_id: str
    orderspace_client_secret: str
    orderspace_token_url: str = TOKEN_URL
    woo_base_url: str
    woo_consumer_key: str
    woo_consumer_secret: str
    woo_query_string_auth: bool = False
    recent_count: int = DEFAULT_RECENT_COUNT
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS


class OrderService:
    def __init__(
        self,
        orderspace_client: OrderspaceClient,
        woo_client: WooCommerceClient,
        *,
        recent_count: int = DEFAULT_RECENT_COUNT,
        aggregator: Optional[OrderAggregator] = None,
    ) -> None:
        self.orderspace_client = orderspace_client
        self.woo_client = woo_client
        self.aggregator = aggregator or OrderAggregator(
            [OrderspaceSource(orderspace_client), WooCommerceSource(woo_client)],
            recent_count=recent_count,
        )

    @classmethod
    def from_config(cls, cfg: OrderServiceConfig) -> "OrderService":
        orderspace_client = OrderspaceClient(
            cfg.orderspace_base_url,
            cfg.orderspace_client_id,
            cfg.orderspace_client_secret,
            token_url=cfg.orderspace_token_url,
            timeout=cfg.timeout_seconds,
        )
        woo_client = WooCommerceClient(
            cfg.woo_base_url,
            cfg.woo_consumer_key,
            cfg.woo_consumer_secret,
            query_string_auth=cfg.woo_query_string_auth,
            timeout=cfg.timeout_seconds,
        )
        LOG.info("Order service initialized")
        return cls(orderspace_client, woo_client, recent_count=cfg.recent_count)

    async def aclose(self) -> None:
        await self.orderspace_client.aclose()
        await self.woo_client.aclose()

    async def fetch_unified(self) -> List[Order]:
        return await self.aggregator.fetch_unified()

    async def fetch_unified_report(self) -> UnifiedOrders:
        return await self.aggregator.fetch_unified_report()

    async def get_order(self, origin: str, order_id: str) -> Union[OrderspaceOrder, WooOrder]:
        """Fetch one order as the source returns it, without normalization."""
        source = parse_origin(origin)
        order_id = order_id.strip()
        if not order_id:
            raise InvalidOrderIdError("missing order id")

        LOG.info("Retrieve single order %s from %s", order_id, source.value)
        if source is Origin.ORDERSPACE:
            return await self.orderspace_client.get_order(order_id)

        if not (order_id.isascii() and order_id.isdigit()):
            raise InvalidOrderIdError(f"invalid WooCommerce order id: {order_id!r}")
        return await self.woo_client.get_order(int(order_id))
