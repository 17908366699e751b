import logging
import time
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from ..addressing import count_unread, notifications_for
from ..events import (
    DealerContacted,
    EventBus,
    RequestAccepted,
    RequestCreated,
    RequestDeclined,
    RoleChanged,
    SellerReferralAdded,
    UserDeleted,
)
from ..ports.accounts_api import UserDto
from ..ports.notifications_api import NotificationDraft, NotificationDto, NotificationsApi, NotificationType
from ..ports.requests_api import PartySnapshot, RequestDto, RequestStatus, RequestType
from ..store import MarketplaceStore

logger = logging.getLogger(__name__)

MARK_ALL = "*"

_OUTCOME_TYPES = {
    (RequestType.BUY, RequestStatus.ACCEPTED): NotificationType.BUY_REQUEST_ACCEPTED,
    (RequestType.BUY, RequestStatus.DECLINED): NotificationType.BUY_REQUEST_DECLINED,
    (RequestType.SELL, RequestStatus.ACCEPTED): NotificationType.SELL_REQUEST_ACCEPTED,
    (RequestType.SELL, RequestStatus.DECLINED): NotificationType.SELL_REQUEST_DECLINED,
}


def _now_ms() -> int:
    return int(time.time() * 1000)


def _user_snapshot(user: UserDto, *fields: str) -> Dict[str, object]:
    snapshot = {"id": user.id, "name": user.display_name}
    for name in fields:
        snapshot[name] = getattr(user, name)
    return {_camel(k): v for k, v in snapshot.items()}


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _item_name(request: RequestDto) -> str:
    if request.item and request.item.product_name:
        return request.item.product_name
    return f"item {request.item_id}"


def _request_parties(request: RequestDto) -> Dict[str, object]:
    customer = request.customer
    seller = request.seller
    item = request.item
    return {
        "requestId": request.id,
        "requestType": request.request_type.value,
        "customer": {
            "id": request.customer_id,
            "name": customer.name if customer else None,
            "email": customer.email if customer else None,
        },
        "item": {
            "id": request.item_id,
            "productName": item.product_name if item else None,
            "buyPremium": item.buy_premium if item else None,
            "sellPremium": item.sell_premium if item else None,
        },
        "seller": {
            "id": request.seller_id,
            "name": seller.name if seller else None,
            "brandName": seller.brand_name if seller else None,
        },
    }


def request_created_draft(request: RequestDto) -> NotificationDraft:
    customer_name = request.customer.name if request.customer and request.customer.name else "A customer"
    kind = NotificationType.BUY_REQUEST if request.request_type == RequestType.BUY else NotificationType.SELL_REQUEST
    data = _request_parties(request)
    data["capturedAmount"] = request.captured_amount
    data["quantity"] = request.quantity
    return NotificationDraft(
        title="New Request",
        message=f"{customer_name} has requested to {request.request_type.value} {_item_name(request)}.",
        type=kind,
        recipient_id=request.seller_id,
        data=data,
    )


def request_outcome_draft(request: RequestDto) -> NotificationDraft:
    """Build the customer-facing notification for an accepted or declined request."""
    verb = "accepted" if request.status == RequestStatus.ACCEPTED else "declined"
    seller_name = request.seller.display_name if request.seller else "The seller"
    return NotificationDraft(
        title=f"Request {verb.title()}",
        message=f"{seller_name} has {verb} your request to {request.request_type.value} {_item_name(request)}.",
        type=_OUTCOME_TYPES[(request.request_type, request.status)],
        recipient_id=request.customer_id,
        data=_request_parties(request),
    )


@dataclass
class NotificationRouter:
    api: NotificationsApi
    store: MarketplaceStore
    inconsistencies: Dict[str, str] = field(default_factory=dict)

    def attach(self, bus: EventBus) -> None:
        bus.subscribe(RequestCreated, self._on_request_created)
        bus.subscribe(RequestAccepted, self._on_request_outcome)
        bus.subscribe(RequestDeclined, self._on_request_outcome)
        bus.subscribe(DealerContacted, self._on_dealer_contacted)
        bus.subscribe(RoleChanged, self._on_role_changed)
        bus.subscribe(UserDeleted, self._on_user_deleted)
        bus.subscribe(SellerReferralAdded, self._on_seller_referral)

    @property
    def is_consistent(self) -> bool:
        return not self.inconsistencies

    # Queries

    def notifications_for(self, viewer_id: Optional[str]) -> List[NotificationDto]:
        return notifications_for(viewer_id, self.store.notifications)

    def unread_count_for(self, viewer_id: Optional[str]) -> int:
        return count_unread(viewer_id, self.store.notifications)

    # Mutations

    async def refresh(self) -> bool:
        """Replace the local list with the backend's and drop recorded divergences."""
        try:
            notifications = await self.api.list_for_user()
        except Exception as e:
            logger.warning(f"Error refreshing notifications: {e}")
            return False
        self.inconsistencies.clear()
        self.store.set_notifications(notifications)
        return True

    async def add_notification(self, draft: NotificationDraft, refresh: bool = True) -> Optional[NotificationDto]:
        try:
            created = await self.api.create(draft)
        except Exception as e:
            logger.warning(f"Error creating notification on backend, keeping it locally: {e}")
            return self._add_local(draft)
        if not created:
            logger.warning(f"Backend refused notification {draft.title!r}")
            return None
        if refresh:
            await self.refresh()
        return None

    def _add_local(self, draft: NotificationDraft) -> NotificationDto:
        now = _now_ms()
        taken = {n.id for n in self.store.notifications}
        stamp = now
        while str(stamp) in taken:
            stamp += 1
        local = NotificationDto(
            id=str(stamp),
            title=draft.title,
            message=draft.message,
            timestamp=now,
            read=False,
            type=draft.type,
            recipient_id=draft.recipient_id,
            data=dict(draft.data),
        )
        self.inconsistencies[local.id] = "created"
        self.store.set_notifications([local, *self.store.notifications])
        return local

    async def mark_as_read(self, notification_id: str) -> None:
        try:
            await self.api.mark_read(notification_id)
        except Exception as e:
            logger.warning(f"Error marking notification {notification_id} as read: {e}")
            self.inconsistencies[notification_id] = "read"
        self.store.set_notifications(
            [n.mark_read() if n.id == notification_id else n for n in self.store.notifications]
        )

    async def mark_all_as_read(self) -> None:
        viewer_id = self.store.viewer_id
        try:
            await self.api.mark_all_read()
        except Exception as e:
            logger.warning(f"Error marking all notifications as read: {e}")
            self.inconsistencies[MARK_ALL] = "read_all"
        visible = {n.id for n in notifications_for(viewer_id, self.store.notifications)}
        self.store.set_notifications(
            [n.mark_read() if n.id in visible else n for n in self.store.notifications]
        )

    async def delete_notification(self, notification_id: str) -> None:
        try:
            await self.api.delete(notification_id)
        except Exception as e:
            logger.warning(f"Error deleting notification {notification_id}: {e}")
            self.inconsistencies[notification_id] = "deleted"
        self.store.set_notifications([n for n in self.store.notifications if n.id != notification_id])

    def clear_all(self) -> None:
        self.store.set_notifications([])

    # Event fan-out. Refreshing is left to the publisher, which reconciles once
    # after the whole operation.

    async def _on_request_created(self, event: RequestCreated) -> None:
        request = event.request
        if request.customer is None and event.customer is not None:
            customer = event.customer
            request = replace(request, customer=PartySnapshot(id=customer.id, name=customer.display_name, email=customer.email))
        await self.add_notification(request_created_draft(request), refresh=False)

    async def _on_request_outcome(self, event) -> None:
        await self.add_notification(request_outcome_draft(event.request), refresh=False)

    async def _on_dealer_contacted(self, event: DealerContacted) -> None:
        customer, dealer = event.customer, event.dealer
        data = {
            "customer": _user_snapshot(customer, "email", "phone", "city", "state"),
            "dealer": _user_snapshot(dealer, "email", "brand_name", "phone"),
        }
        await self.add_notification(NotificationDraft(
            title="New Customer Inquiry",
            message=f"{customer.display_name} is interested in your products and has requested your contact details.",
            type=NotificationType.CONTACT_REQUEST,
            recipient_id=dealer.id,
            data=data,
        ), refresh=False)
        await self.add_notification(NotificationDraft(
            title="New Dealer Contact",
            message=f"{customer.display_name} contacted {dealer.display_name}.",
            type=NotificationType.CONTACT_REQUEST,
            data=data,
        ), refresh=False)

    async def _on_role_changed(self, event: RoleChanged) -> None:
        user = event.user
        await self.add_notification(NotificationDraft(
            title="User Role Changed",
            message=f"{user.display_name} has upgraded from {event.previous_role} to {event.new_role}.",
            type=NotificationType.ROLE_CHANGE,
            data={
                "user": _user_snapshot(user, "email", "role", "city", "state", "phone", "brand_name"),
                "previousRole": event.previous_role,
                "newRole": event.new_role,
            },
        ), refresh=False)

    async def _on_user_deleted(self, event: UserDeleted) -> None:
        user = event.user
        data = {"user": _user_snapshot(user, "email", "role")}
        if user.role == "customer":
            # customers are only announced to the sellers they were connected to
            for seller_id in event.connected_seller_ids:
                await self.add_notification(NotificationDraft(
                    title="Customer Deleted",
                    message=f"{user.display_name} has been removed from the system.",
                    type=NotificationType.USER_DELETION,
                    recipient_id=seller_id,
                    data=data,
                ), refresh=False)
            return
        await self.add_notification(NotificationDraft(
            title="User Deleted",
            message=f"{user.display_name} ({user.role}) has been removed from the system.",
            type=NotificationType.USER_DELETION,
            data=data,
        ), refresh=False)

    async def _on_seller_referral(self, event: SellerReferralAdded) -> None:
        customer = event.customer
        await self.add_notification(NotificationDraft(
            title="New Referral Connection",
            message=f"{customer.display_name} has added you as a seller using your referral code.",
            type=NotificationType.REFERRAL,
            recipient_id=event.seller.id,
            data={"customer": _user_snapshot(customer, "email")},
        ), refresh=False)
