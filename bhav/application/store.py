"""Shared session store.

Holds the signed-in user, the bearer token, the cached requests relevant to
that user, the seller inventory and the notification list. These caches are
not authoritative: fetches replace them wholesale. Listeners registered with
``subscribe`` are called after every change so the UI can re-render.
"""
import logging
from typing import Callable, List, Optional

from .addressing import count_unread
from .ports.accounts_api import UserDto
from .ports.inventory_api import InventoryItemDto
from .ports.notifications_api import NotificationDto
from .ports.requests_api import RequestDto

logger = logging.getLogger(__name__)

Listener = Callable[["MarketplaceStore"], None]


class MarketplaceStore:
    def __init__(self) -> None:
        self.user: Optional[UserDto] = None
        self.token: Optional[str] = None
        self.requests: List[RequestDto] = []
        self.inventory: List[InventoryItemDto] = []
        self.notifications: List[NotificationDto] = []
        self.unread_count: int = 0
        self.contacted_dealers: List[str] = []
        self._listeners: List[Listener] = []

    @property
    def viewer_id(self) -> Optional[str]:
        return self.user.id if self.user else None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and bool(self.token)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Store listener failed")

    def _recompute_unread(self) -> None:
        self.unread_count = count_unread(self.viewer_id, self.notifications)

    def set_session(self, user: Optional[UserDto], token: Optional[str] = None) -> None:
        self.user = user
        if token is not None:
            self.token = token
        self._recompute_unread()
        self._changed()

    def clear_session(self) -> None:
        self.user = None
        self.token = None
        self.requests = []
        self.inventory = []
        self.notifications = []
        self.contacted_dealers = []
        self._recompute_unread()
        self._changed()

    def set_requests(self, requests: List[RequestDto]) -> None:
        self.requests = list(requests)
        self._changed()

    def upsert_request(self, request: RequestDto) -> None:
        for index, existing in enumerate(self.requests):
            if existing.id == request.id:
                self.requests[index] = request
                break
        else:
            self.requests.append(request)
        self._changed()

    def find_request(self, request_id: str) -> Optional[RequestDto]:
        return next((r for r in self.requests if r.id == request_id), None)

    def set_notifications(self, notifications: List[NotificationDto]) -> None:
        self.notifications = list(notifications)
        self._recompute_unread()
        self._changed()

    def add_contacted_dealer(self, dealer_id: str) -> None:
        if dealer_id not in self.contacted_dealers:
            self.contacted_dealers.append(dealer_id)
            self._changed()

    def set_inventory(self, items: List[InventoryItemDto]) -> None:
        self.inventory = list(items)
        self._changed()

    def upsert_inventory_item(self, item: InventoryItemDto) -> None:
        for index, existing in enumerate(self.inventory):
            if existing.id == item.id:
                self.inventory[index] = item
                break
        else:
            self.inventory.append(item)
        self._changed()

    def remove_inventory_item(self, item_id: str) -> None:
        self.inventory = [i for i in self.inventory if i.id != item_id]
        self._changed()
