# bhav/schemas/inventory/inventory.py
from typing import Any, List, Optional

from pydantic import AliasChoices, Field, field_validator

from ...application.ports.inventory_api import InventoryItemDto
from ..common.common import CamelModel, IdStr, to_epoch_ms


class InventoryItemCreate(CamelModel):
    product_name: str = Field(min_length=1)
    product_type: Optional[str] = None
    buy_premium: Optional[float] = None
    sell_premium: Optional[float] = None
    is_buy_premium_enabled: bool = True
    is_sell_premium_enabled: bool = True
    is_visible: bool = True
    description: Optional[str] = None


class InventoryItemUpdate(CamelModel):
    product_name: Optional[str] = None
    product_type: Optional[str] = None
    buy_premium: Optional[float] = None
    sell_premium: Optional[float] = None
    is_buy_premium_enabled: Optional[bool] = None
    is_sell_premium_enabled: Optional[bool] = None
    is_visible: Optional[bool] = None
    description: Optional[str] = None


class InventoryItemSchema(CamelModel):
    id: IdStr = Field(validation_alias=AliasChoices("_id", "id"))
    seller_id: IdStr
    product_name: str = ""
    product_type: Optional[str] = None
    buy_premium: Optional[float] = None
    sell_premium: Optional[float] = None
    is_buy_premium_enabled: bool = True
    is_sell_premium_enabled: bool = True
    is_visible: bool = True
    description: Optional[str] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None

    @field_validator("seller_id", mode="before")
    @classmethod
    def seller_ref(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return value.get("_id") or value.get("id")
        return value

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def normalize_timestamp(cls, value: Any) -> Optional[int]:
        return to_epoch_ms(value)

    def to_dto(self) -> InventoryItemDto:
        return InventoryItemDto(
            id=self.id,
            seller_id=self.seller_id,
            product_name=self.product_name,
            product_type=self.product_type,
            buy_premium=self.buy_premium,
            sell_premium=self.sell_premium,
            is_buy_premium_enabled=self.is_buy_premium_enabled,
            is_sell_premium_enabled=self.is_sell_premium_enabled,
            is_visible=self.is_visible,
            description=self.description,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class InventoryItemEnvelope(CamelModel):
    success: bool = False
    message: Optional[str] = None
    item: Optional[InventoryItemSchema] = None


class InventoryListEnvelope(CamelModel):
    success: bool = False
    message: Optional[str] = None
    items: List[InventoryItemSchema] = []
