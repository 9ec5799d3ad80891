from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Origin(str, Enum):
    ORDERSPACE = "Orderspace"
    WOOCOMMERCE = "WooCommerce"


class Order(BaseModel):
    """Display-ready order from either source.

    ``id`` is only unique per origin; pair it with ``origin`` for a global key.
    ``sort_key`` orders the list and is left out of serialized output.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    order_number: int
    customer: str
    order_date_display: str
    deliver_on: str
    total: str
    status: str
    origin: Origin
    sort_key: datetime = Field(exclude=True)


class SourceResult(BaseModel):
    origin: Origin
    orders: List[Order] = []
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class UnifiedOrders(BaseModel):
    orders: List[Order]
    sources: List[SourceResult]

    @property
    def failed_sources(self) -> List[SourceResult]:
        return [s for s in self.sources if not s.ok]
