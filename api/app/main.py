import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api.app.config import settings
from api.app.routers.orders import router as orders_router
from common.orders.service import OrderService

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
LOG = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    service = OrderService.from_config(settings.order_service_config())
    app.state.order_service = service
    try:
        yield
    finally:
        await service.aclose()


app = FastAPI(lifespan=lifespan, title="OrderDesk API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    max_age=86400,
)


@app.middleware("http")
async def request_logging(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:16]
    request.state.request_id = request_id
    started = time.perf_counter()
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    LOG.info(
        "%s %s -> %s in %.1fms [%s]",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000,
        request_id,
    )
    return response


app.include_router(orders_router)


@app.get("/health")
def health():
    return {
        "status": "OK",
        "version": app.version,
        "env": settings.app_env,
        "sources": {
            "orderspace": "configured" if settings.orderspace_configured else "unconfigured",
            "woocommerce": "configured" if settings.woo_configured else "unconfigured",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.app.main:app", host=settings.host, port=settings.port)
