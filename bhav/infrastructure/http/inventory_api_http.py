from dataclasses import asdict
from typing import Any, Dict, List

from ...application.ports.inventory_api import InventoryApi, InventoryItemDraft, InventoryItemDto
from ...exceptions import BadRequestError
from ...schemas.inventory.inventory import (
    InventoryItemCreate,
    InventoryItemEnvelope,
    InventoryItemUpdate,
    InventoryListEnvelope,
)
from .client import BhavHttpClient, parse_body


class HttpInventoryApi(InventoryApi):
    def __init__(self, http: BhavHttpClient) -> None:
        self.http = http

    async def add(self, draft: InventoryItemDraft) -> InventoryItemDto:
        payload = InventoryItemCreate(**asdict(draft))
        body = await self.http.post("/inventory", json=payload.model_dump(by_alias=True, exclude_none=True))
        return self._item(body, "Failed to add inventory item.")

    async def list_for_seller(self, seller_id: str) -> List[InventoryItemDto]:
        body = await self.http.get(f"/inventory/seller/{seller_id}")
        return [i.to_dto() for i in parse_body(InventoryListEnvelope, body).items]

    async def list_public(self, seller_id: str) -> List[InventoryItemDto]:
        body = await self.http.get(f"/inventory/public/{seller_id}")
        return [i.to_dto() for i in parse_body(InventoryListEnvelope, body).items]

    async def update(self, item_id: str, fields: Dict[str, Any]) -> InventoryItemDto:
        payload = InventoryItemUpdate(**fields)
        body = await self.http.put(f"/inventory/{item_id}", json=payload.model_dump(by_alias=True, exclude_none=True))
        return self._item(body, "Failed to update inventory item.")

    async def delete(self, item_id: str) -> None:
        await self.http.delete(f"/inventory/{item_id}")

    async def toggle_visibility(self, item_id: str) -> InventoryItemDto:
        body = await self.http.patch(f"/inventory/{item_id}/toggle-visibility")
        return self._item(body, "Failed to toggle inventory item visibility.")

    @staticmethod
    def _item(body: Dict[str, Any], fallback: str) -> InventoryItemDto:
        envelope = parse_body(InventoryItemEnvelope, body)
        if envelope.item is None:
            raise BadRequestError(envelope.message or fallback)
        return envelope.item.to_dto()
