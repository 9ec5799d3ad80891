from __future__ import annotations

import logging
from typing import Any, Dict, Generic, List, Mapping, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from common.clients.errors import APIError, DecodeError

LOG = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0

M = TypeVar("M", bound=BaseModel)


class SourceModel(BaseModel):
    # upstream ids and totals arrive as numbers or strings depending on the store
    model_config = ConfigDict(coerce_numbers_to_str=True, populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        # upstream sends null for unset fields; those take the field default
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class PaginationInfo(BaseModel):
    limit: int = 0
    starting_after: Optional[str] = None
    page: Optional[int] = None
    total: Optional[int] = None
    total_pages: Optional[int] = None
    # A full page only suggests more data; the sources do not say so explicitly.
    has_more: bool = False


class OrdersPage(BaseModel, Generic[M]):
    orders: List[M]
    pagination: PaginationInfo
    headers: Dict[str, str] = {}


def translate_error(resp: httpx.Response) -> APIError:
    try:
        body = resp.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and body.get("message"):
        code = body.get("code")
        return APIError(
            str(body["message"]),
            status_code=resp.status_code,
            code=str(code) if code is not None else None,
        )
    return APIError(resp.text or resp.reason_phrase, status_code=resp.status_code)


def decode_json(resp: httpx.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError as exc:
        raise DecodeError(f"response from {resp.request.url.path} is not JSON") from exc


def decode_orders(data: Any, model: Type[M]) -> List[M]:
    """Accept either a bare JSON array or an object carrying an ``orders`` array."""
    if data is None:
        return []
    if isinstance(data, list):
        items = data
    elif isinstance(data, dict) and isinstance(data.get("orders"), list):
        items = data["orders"]
    else:
        raise DecodeError(f"unexpected orders payload of type {type(data).__name__}")

    try:
        return [model.model_validate(item) for item in items]
    except ValidationError as exc:
        raise DecodeError(f"failed to decode {model.__name__}: {exc}") from exc


def decode_order(data: Any, model: Type[M], wrapper: str = "order") -> M:
    if isinstance(data, dict) and isinstance(data.get(wrapper), dict):
        data = data[wrapper]
    if not isinstance(data, dict) or not data:
        raise DecodeError(f"no {model.__name__} in response")
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise DecodeError(f"failed to decode {model.__name__}: {exc}") from exc


class BaseClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        auth: Optional[httpx.Auth | tuple[str, str]] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.http = httpx.AsyncClient(
            timeout=timeout,
            auth=auth,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.http.aclose()

    def build_url(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> str:
        url = httpx.URL(f"{self.base_url}/{endpoint.lstrip('/')}")
        query = {k: str(v) for k, v in (params or {}).items() if v is not None and v != ""}
        if query:
            url = url.copy_merge_params(query)
        return str(url)

    async def _request_headers(self) -> Dict[str, str]:
        return {}

    async def _get(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> httpx.Response:
        url = self.build_url(endpoint, params)
        headers = await self._request_headers()
        LOG.debug("GET %s/%s", self.base_url, endpoint.lstrip("/"))
        try:
            resp = await self.http.get(url, headers=headers)
        except httpx.HTTPError as exc:
            raise APIError(f"GET {endpoint} failed: {exc}") from exc

        if not resp.is_success:
            raise translate_error(resp)
        return resp
