from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Protocol


class RequestType(str, Enum):
    BUY = "buy"
    SELL = "sell"


class RequestStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


@dataclass
class ItemSnapshot:
    id: str
    product_name: Optional[str] = None
    buy_premium: Optional[float] = None
    sell_premium: Optional[float] = None


@dataclass
class PartySnapshot:
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    brand_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.brand_name or self.name or self.id


@dataclass
class RequestDto:
    id: str
    item_id: str
    customer_id: str
    seller_id: str
    request_type: RequestType
    status: RequestStatus
    captured_amount: float
    created_at: int
    updated_at: int
    quantity: Optional[str] = None
    message: Optional[str] = None
    captured_at: Optional[int] = None
    item: Optional[ItemSnapshot] = None
    customer: Optional[PartySnapshot] = None
    seller: Optional[PartySnapshot] = None

    @property
    def is_terminal(self) -> bool:
        return self.status != RequestStatus.PENDING

    def with_status(self, status: RequestStatus, updated_at: int) -> "RequestDto":
        return replace(self, status=status, updated_at=updated_at)


@dataclass
class RequestDraft:
    item_id: str
    request_type: RequestType
    captured_amount: float
    quantity: Optional[str] = None
    message: Optional[str] = None


class RequestsApi(Protocol):
    async def create(self, draft: RequestDraft) -> RequestDto:
        ...

    async def accept(self, request_id: str) -> Optional[RequestDto]:
        ...

    async def decline(self, request_id: str) -> Optional[RequestDto]:
        ...

    async def list_for_seller(self, status: Optional[str] = None) -> List[RequestDto]:
        ...

    async def list_for_customer(self, status: Optional[str] = None) -> List[RequestDto]:
        ...
