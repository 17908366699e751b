from typing import List, Optional

from ...application.ports.notifications_api import NotificationDraft, NotificationDto, NotificationsApi
from ...core.config import settings
from ...schemas.notifications.notification import NotificationCreate, NotificationListResponse
from .client import BhavHttpClient, parse_body


class HttpNotificationsApi(NotificationsApi):
    def __init__(self, http: BhavHttpClient, priority: Optional[str] = None) -> None:
        self.http = http
        self.priority = priority or settings.NOTIFICATION_PRIORITY

    async def create(self, draft: NotificationDraft) -> bool:
        payload = NotificationCreate.from_draft(draft, priority=self.priority)
        body = await self.http.post(
            "/notifications/create",
            json=payload.model_dump(by_alias=True, mode="json"),
            check_success=False,
        )
        return bool(body.get("success"))

    async def list_for_user(self) -> List[NotificationDto]:
        body = await self.http.get("/notifications/user")
        return [n.to_dto() for n in parse_body(NotificationListResponse, body).notifications]

    async def mark_read(self, notification_id: str) -> None:
        await self.http.patch(f"/notifications/{notification_id}/read")

    async def mark_all_read(self) -> None:
        await self.http.patch("/notifications/mark-all-read")

    async def delete(self, notification_id: str) -> None:
        await self.http.delete(f"/notifications/{notification_id}")
