"""Notification visibility rules.

A notification without a recipient is global and visible to every viewer;
one with a recipient is visible only to that viewer. Unread counts are always
derived from the list, never tracked incrementally.
"""
from typing import Iterable, List, Optional

from .ports.notifications_api import NotificationDto


def is_visible_to(notification: NotificationDto, viewer_id: Optional[str]) -> bool:
    if not notification.recipient_id:
        return True
    return viewer_id is not None and notification.recipient_id == viewer_id


def notifications_for(viewer_id: Optional[str], notifications: Iterable[NotificationDto]) -> List[NotificationDto]:
    return [n for n in notifications if is_visible_to(n, viewer_id)]


def count_unread(viewer_id: Optional[str], notifications: Iterable[NotificationDto]) -> int:
    return sum(1 for n in notifications if not n.read and is_visible_to(n, viewer_id))
