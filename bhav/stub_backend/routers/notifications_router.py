import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from ...schemas.notifications.notification import NotificationCreate
from ..security import get_current_user, get_state
from ..state import BackendState, iso_now

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.post("/create")
def create_notification(
    payload: NotificationCreate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    state: BackendState = Depends(get_state),
):
    if state.notifications_unavailable:
        raise HTTPException(status_code=503, detail="Notification service unavailable")
    record = {
        "_id": state.next_id("n"),
        "recipientId": payload.recipient_id,
        "title": payload.title,
        "message": payload.message,
        "type": payload.type.value,
        "data": payload.data,
        "isGlobal": payload.is_global,
        "isAdminOnly": payload.is_admin_only,
        "priority": payload.priority,
        "read": False,
        "createdBy": current_user["_id"],
        "createdAt": iso_now(),
    }
    state.notifications.append(record)
    return {"success": True, "notification": record}


@router.get("/user")
def user_notifications(current_user: Dict[str, Any] = Depends(get_current_user), state: BackendState = Depends(get_state)):
    notifications = state.visible_notifications(current_user["_id"])
    unread = sum(1 for n in notifications if not n["read"])
    return {"success": True, "notifications": notifications, "unreadCount": unread}


@router.patch("/mark-all-read")
def mark_all_read(current_user: Dict[str, Any] = Depends(get_current_user), state: BackendState = Depends(get_state)):
    for record in state.visible_notifications(current_user["_id"]):
        record["read"] = True
    return {"success": True, "message": "All notifications marked as read"}


@router.patch("/{notification_id}/read")
def mark_read(
    notification_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    state: BackendState = Depends(get_state),
):
    record = state.find_notification(notification_id)
    if not record or not state.is_visible(record, current_user["_id"]):
        raise HTTPException(status_code=404, detail="Notification not found")
    record["read"] = True
    return {"success": True, "message": "Notification marked as read"}


@router.delete("/{notification_id}")
def delete_notification(
    notification_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    state: BackendState = Depends(get_state),
):
    record = state.find_notification(notification_id)
    if not record or not state.is_visible(record, current_user["_id"]):
        raise HTTPException(status_code=404, detail="Notification not found")
    state.notifications.remove(record)
    logger.info(f"Notification {notification_id} deleted by {current_user['_id']}")
    return {"success": True, "message": "Notification deleted"}
