from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol


class NotificationType(str, Enum):
    USER_SIGNUP = "user_signup"
    SELLER_SIGNUP = "seller_signup"
    CUSTOMER_SIGNUP = "customer_signup"
    TRANSACTION = "transaction"
    SYSTEM = "system"
    ALERT = "alert"
    USER_DELETION = "user_deletion"
    EMAIL_VERIFICATION = "email_verification"
    CONTACT_REQUEST = "contact_request"
    REFERRAL = "referral"
    ROLE_CHANGE = "role_change"
    PAYMENT_SUCCESS = "payment_success"
    RATE_INTEREST = "rate_interest"
    BUY_REQUEST = "buy_request"
    BUY_REQUEST_ACCEPTED = "buy_request_accepted"
    BUY_REQUEST_DECLINED = "buy_request_declined"
    SELL_REQUEST = "sell_request"
    SELL_REQUEST_ACCEPTED = "sell_request_accepted"
    SELL_REQUEST_DECLINED = "sell_request_declined"


@dataclass
class NotificationDto:
    id: str
    title: str
    message: str
    timestamp: int
    read: bool
    type: NotificationType
    recipient_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_global(self) -> bool:
        return not self.recipient_id

    def mark_read(self) -> "NotificationDto":
        return self if self.read else replace(self, read=True)


@dataclass
class NotificationDraft:
    title: str
    message: str
    type: NotificationType
    recipient_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)


class NotificationsApi(Protocol):
    async def create(self, draft: NotificationDraft) -> bool:
        ...

    async def list_for_user(self) -> List[NotificationDto]:
        ...

    async def mark_read(self, notification_id: str) -> None:
        ...

    async def mark_all_read(self) -> None:
        ...

    async def delete(self, notification_id: str) -> None:
        ...
