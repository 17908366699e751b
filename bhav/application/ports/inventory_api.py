from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol


@dataclass
class InventoryItemDto:
    id: str
    seller_id: str
    product_name: str
    product_type: Optional[str] = None
    buy_premium: Optional[float] = None
    sell_premium: Optional[float] = None
    is_buy_premium_enabled: bool = True
    is_sell_premium_enabled: bool = True
    is_visible: bool = True
    description: Optional[str] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None


@dataclass
class InventoryItemDraft:
    product_name: str
    product_type: Optional[str] = None
    buy_premium: Optional[float] = None
    sell_premium: Optional[float] = None
    is_buy_premium_enabled: bool = True
    is_sell_premium_enabled: bool = True
    is_visible: bool = True
    description: Optional[str] = None


class InventoryApi(Protocol):
    async def add(self, draft: InventoryItemDraft) -> InventoryItemDto:
        ...

    async def list_for_seller(self, seller_id: str) -> List[InventoryItemDto]:
        ...

    async def list_public(self, seller_id: str) -> List[InventoryItemDto]:
        ...

    async def update(self, item_id: str, fields: Dict[str, Any]) -> InventoryItemDto:
        ...

    async def delete(self, item_id: str) -> None:
        ...

    async def toggle_visibility(self, item_id: str) -> InventoryItemDto:
        ...
