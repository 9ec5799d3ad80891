import sys
from pathlib import Path

import pytest
from dotenv import load_dotenv

from payloads import ORDERSPACE_URL, TOKEN_URL, WOO_URL


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

load_dotenv(ROOT / ".env")


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def orderspace_client():
    from common.clients.orderspace import OrderspaceClient

    client = OrderspaceClient(ORDERSPACE_URL, "client-id", "client-secret", token_url=TOKEN_URL)
    try:
        yield client
    finally:
        await client.aclose()


@pytest.fixture
async def woo_client():
    from common.clients.woocommerce import WooCommerceClient

    client = WooCommerceClient(WOO_URL, "ck_test", "cs_test")
    try:
        yield client
    finally:
        await client.aclose()
