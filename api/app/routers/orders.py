import logging
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates

from common.clients.errors import SourceError
from common.clients.orderspace import OrderspaceOrder
from common.orders.service import OrderLookupError, OrderService

LOG = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parents[1] / "templates"))


def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service


def wants_json(request: Request) -> bool:
    if request.headers.get("content-type", "").startswith("application/json"):
        return True
    accept = request.headers.get("accept", "")
    return "application/json" in accept and "text/html" not in accept


@router.get("")
async def list_orders(request: Request, service: OrderService = Depends(get_order_service)):
    report = await service.fetch_unified_report()
    if wants_json(request):
        return JSONResponse([o.model_dump(mode="json", by_alias=True) for o in report.orders])

    return templates.TemplateResponse(
        request,
        "orders.html",
        {
            "title": "Orders",
            "orders": report.orders,
            "failed_sources": report.failed_sources,
        },
    )


@router.get("/{origin}/{order_id}")
async def get_order(
    origin: str,
    order_id: str,
    request: Request,
    service: OrderService = Depends(get_order_service),
):
    try:
        order = await service.get_order(origin, order_id)
    except OrderLookupError as exc:
        LOG.warning("Rejected order lookup %s/%s: %s", origin, order_id, exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except SourceError as exc:
        LOG.error("error retrieving order details %s/%s: %s", origin, order_id, exc)
        raise HTTPException(status_code=500, detail=f"failed to retrieve order details: {exc}") from exc

    if wants_json(request):
        return JSONResponse(order.model_dump(mode="json", by_alias=True))

    template = "order_orderspace.html" if isinstance(order, OrderspaceOrder) else "order_woocommerce.html"
    return templates.TemplateResponse(
        request,
        template,
        {"title": f"Order {order_id}", "order": order, "origin": origin},
    )
