# bhav/schemas/notifications/notification.py
import logging
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, Field, field_validator, model_validator

from ...application.ports.notifications_api import NotificationDraft, NotificationDto, NotificationType
from ..common.common import CamelModel, IdStr, now_ms, to_epoch_ms

logger = logging.getLogger(__name__)


class NotificationCreate(CamelModel):
    recipient_id: Optional[str] = None
    title: str
    message: str
    type: NotificationType
    data: Dict[str, Any] = {}
    is_global: bool = False
    is_admin_only: bool = False
    priority: str = "medium"

    @classmethod
    def from_draft(cls, draft: NotificationDraft, priority: str = "medium") -> "NotificationCreate":
        return cls(
            recipient_id=draft.recipient_id,
            title=draft.title,
            message=draft.message,
            type=draft.type,
            data=draft.data,
            is_global=not draft.recipient_id,
            is_admin_only=False,
            priority=priority,
        )


class NotificationSchema(CamelModel):
    id: IdStr = Field(validation_alias=AliasChoices("_id", "id"))
    title: str = ""
    message: str = ""
    timestamp: Optional[int] = None
    created_at: Optional[int] = None
    read: bool = False
    type: NotificationType = NotificationType.SYSTEM
    recipient_id: Optional[IdStr] = None
    data: Optional[Dict[str, Any]] = None

    @model_validator(mode="before")
    @classmethod
    def unpack_recipient(cls, values: Any) -> Any:
        if isinstance(values, dict) and isinstance(values.get("recipientId"), dict):
            values = dict(values)
            ref = values["recipientId"]
            values["recipientId"] = ref.get("_id") or ref.get("id")
        return values

    @field_validator("title", "message", mode="before")
    @classmethod
    def text_or_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("timestamp", "created_at", mode="before")
    @classmethod
    def normalize_timestamp(cls, value: Any) -> Optional[int]:
        return to_epoch_ms(value)

    @field_validator("type", mode="before")
    @classmethod
    def known_type(cls, value: Any) -> Any:
        try:
            return NotificationType(value)
        except ValueError:
            logger.debug(f"Unknown notification type {value!r}, treating as system")
            return NotificationType.SYSTEM

    def to_dto(self) -> NotificationDto:
        timestamp = self.timestamp if self.timestamp is not None else self.created_at
        return NotificationDto(
            id=self.id,
            title=self.title,
            message=self.message,
            timestamp=timestamp if timestamp is not None else now_ms(),
            read=self.read,
            type=self.type,
            recipient_id=self.recipient_id or None,
            data=self.data or {},
        )


class NotificationListResponse(CamelModel):
    notifications: List[NotificationSchema] = []
    unread_count: Optional[int] = None
