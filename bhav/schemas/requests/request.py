# bhav/schemas/requests/request.py
from typing import Any, List, Optional

from pydantic import AliasChoices, Field, field_validator, model_validator

from ...application.ports.requests_api import (
    ItemSnapshot,
    PartySnapshot,
    RequestDto,
    RequestStatus,
    RequestType,
)
from ..common.common import CamelModel, IdStr, now_ms, to_epoch_ms


class ItemSnapshotSchema(CamelModel):
    id: IdStr = Field(validation_alias=AliasChoices("_id", "id"))
    product_name: Optional[str] = None
    buy_premium: Optional[float] = None
    sell_premium: Optional[float] = None

    def to_dto(self) -> ItemSnapshot:
        return ItemSnapshot(
            id=self.id,
            product_name=self.product_name,
            buy_premium=self.buy_premium,
            sell_premium=self.sell_premium,
        )


class PartySchema(CamelModel):
    id: IdStr = Field(validation_alias=AliasChoices("_id", "id"))
    name: Optional[str] = Field(default=None, validation_alias=AliasChoices("fullName", "name"))
    email: Optional[str] = None
    brand_name: Optional[str] = None

    def to_dto(self) -> PartySnapshot:
        return PartySnapshot(id=self.id, name=self.name, email=self.email, brand_name=self.brand_name)


class RequestCreate(CamelModel):
    item_id: str
    request_type: RequestType
    captured_amount: float = Field(gt=0)
    quantity: Optional[str] = None
    message: Optional[str] = None


class RequestSchema(CamelModel):
    id: IdStr = Field(validation_alias=AliasChoices("_id", "id"))
    item_id: IdStr
    customer_id: IdStr
    seller_id: IdStr
    request_type: RequestType
    status: RequestStatus = RequestStatus.PENDING
    captured_amount: float
    quantity: Optional[str] = None
    message: Optional[str] = None
    captured_at: Optional[int] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    item: Optional[ItemSnapshotSchema] = None
    customer: Optional[PartySchema] = None
    seller: Optional[PartySchema] = None

    @model_validator(mode="before")
    @classmethod
    def unpack_populated_refs(cls, values: Any) -> Any:
        # populated references arrive as objects in place of the id
        if not isinstance(values, dict):
            return values
        values = dict(values)
        for key, target in (("itemId", "item"), ("customerId", "customer"), ("sellerId", "seller")):
            ref = values.get(key)
            if isinstance(ref, dict):
                values.setdefault(target, ref)
                values[key] = ref.get("_id") or ref.get("id")
        return values

    @field_validator("quantity", mode="before")
    @classmethod
    def quantity_as_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("captured_at", "created_at", "updated_at", mode="before")
    @classmethod
    def normalize_timestamp(cls, value: Any) -> Optional[int]:
        return to_epoch_ms(value)

    def to_dto(self) -> RequestDto:
        created_at = self.created_at if self.created_at is not None else now_ms()
        return RequestDto(
            id=self.id,
            item_id=self.item_id,
            customer_id=self.customer_id,
            seller_id=self.seller_id,
            request_type=self.request_type,
            status=self.status,
            captured_amount=self.captured_amount,
            created_at=created_at,
            updated_at=self.updated_at if self.updated_at is not None else created_at,
            quantity=self.quantity,
            message=self.message,
            captured_at=self.captured_at,
            item=self.item.to_dto() if self.item else None,
            customer=self.customer.to_dto() if self.customer else None,
            seller=self.seller.to_dto() if self.seller else None,
        )


class RequestEnvelope(CamelModel):
    success: bool = False
    message: Optional[str] = None
    request: Optional[RequestSchema] = None


class RequestListEnvelope(CamelModel):
    success: bool = False
    message: Optional[str] = None
    requests: List[RequestSchema] = []
