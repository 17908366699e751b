import logging
from typing import Any, Callable, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ...core.config import settings
from ...exceptions import BadRequestError, ServerError, from_httpx_error

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

TokenProvider = Callable[[], Optional[str]]


class BhavHttpClient:
    """Thin async JSON client for the marketplace REST API.

    Every failure leaves this class as a ``MarketplaceApiError`` subclass so the
    services above only ever deal with one error family.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        token_provider: Optional[TokenProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._token_provider = token_provider or (lambda: None)
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    def _headers(self) -> Dict[str, str]:
        token = self._token_provider()
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        check_success: bool = True,
    ) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, path, json=json, params=params, headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPError as exc:
            error = from_httpx_error(exc)
            logger.error(f"{method} {path} failed: {type(error).__name__} {error}")
            raise error from exc

        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError as exc:
            raise ServerError("Invalid response from server", response.status_code) from exc
        if not isinstance(body, dict):
            return {"data": body}
        if check_success and body.get("success") is False:
            raise BadRequestError(body.get("message"), response.status_code)
        return body

    async def get(self, path: str, **kwargs: Any) -> Dict[str, Any]:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Dict[str, Any]:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Dict[str, Any]:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> Dict[str, Any]:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Dict[str, Any]:
        return await self.request("DELETE", path, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()


def parse_body(model: Type[M], body: Dict[str, Any]) -> M:
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        logger.error(f"Unexpected {model.__name__} payload: {exc}")
        raise ServerError("Invalid response from server") from exc
