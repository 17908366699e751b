from typing import List, Optional

from ...application.ports.requests_api import RequestDraft, RequestDto, RequestsApi
from ...exceptions import BadRequestError
from ...schemas.requests.request import RequestCreate, RequestEnvelope, RequestListEnvelope
from .client import BhavHttpClient, parse_body


class HttpRequestsApi(RequestsApi):
    def __init__(self, http: BhavHttpClient) -> None:
        self.http = http

    async def create(self, draft: RequestDraft) -> RequestDto:
        payload = RequestCreate(
            item_id=draft.item_id,
            request_type=draft.request_type,
            captured_amount=draft.captured_amount,
            quantity=draft.quantity,
            message=draft.message,
        )
        body = await self.http.post("/requests", json=payload.model_dump(by_alias=True, exclude_none=True, mode="json"))
        envelope = parse_body(RequestEnvelope, body)
        if envelope.request is None:
            raise BadRequestError(envelope.message or "Failed to create request.")
        return envelope.request.to_dto()

    async def accept(self, request_id: str) -> Optional[RequestDto]:
        return await self._respond(request_id, "accept")

    async def decline(self, request_id: str) -> Optional[RequestDto]:
        return await self._respond(request_id, "decline")

    async def _respond(self, request_id: str, action: str) -> Optional[RequestDto]:
        body = await self.http.patch(f"/requests/{request_id}/{action}")
        envelope = parse_body(RequestEnvelope, body)
        return envelope.request.to_dto() if envelope.request else None

    async def list_for_seller(self, status: Optional[str] = None) -> List[RequestDto]:
        return await self._list("/requests/seller", status)

    async def list_for_customer(self, status: Optional[str] = None) -> List[RequestDto]:
        return await self._list("/requests/customer", status)

    async def _list(self, path: str, status: Optional[str]) -> List[RequestDto]:
        params = {"status": status} if status else None
        body = await self.http.get(path, params=params)
        return [r.to_dto() for r in parse_body(RequestListEnvelope, body).requests]
