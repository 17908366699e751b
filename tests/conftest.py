import itertools
from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple

import pytest

from bhav.application.events import EventBus
from bhav.application.ports.accounts_api import AccountsApi, UserDto
from bhav.application.ports.inventory_api import InventoryApi, InventoryItemDraft, InventoryItemDto
from bhav.application.ports.notifications_api import (
    NotificationDraft,
    NotificationDto,
    NotificationsApi,
)
from bhav.application.ports.requests_api import (
    ItemSnapshot,
    PartySnapshot,
    RequestDraft,
    RequestDto,
    RequestsApi,
    RequestStatus,
)
from bhav.application.services.account_service import AccountService
from bhav.application.services.inventory_service import InventoryService
from bhav.application.services.notification_router import NotificationRouter
from bhav.application.services.request_coordinator import RequestCoordinator
from bhav.application.store import MarketplaceStore
from bhav.exceptions import BadRequestError, NetworkError, ResourceNotFoundError


class FakeRequestsApi(RequestsApi):
    def __init__(self):
        self.items = {
            "item-1": ItemSnapshot(id="item-1", product_name="Gold 24K 10g", buy_premium=120.0, sell_premium=80.0),
        }
        self.item_sellers = {"item-1": "seller-1"}
        self.requests: Dict[str, RequestDto] = {}
        self.calls: List[Tuple[str, Any]] = []
        self.error: Optional[Exception] = None
        self.omit_request = False
        self._ids = itertools.count(1)
        self.customer_id = "customer-1"

    async def create(self, draft: RequestDraft) -> RequestDto:
        self.calls.append(("create", draft))
        if self.error:
            raise self.error
        if draft.item_id not in self.items:
            raise ResourceNotFoundError("Item not found", 404)
        request = RequestDto(
            id=f"req-{next(self._ids)}",
            item_id=draft.item_id,
            customer_id=self.customer_id,
            seller_id=self.item_sellers[draft.item_id],
            request_type=draft.request_type,
            status=RequestStatus.PENDING,
            captured_amount=draft.captured_amount,
            created_at=1_700_000_000_000,
            updated_at=1_700_000_000_000,
            quantity=draft.quantity,
            message=draft.message,
            item=self.items[draft.item_id],
            seller=PartySnapshot(id="seller-1", name="Ravi", brand_name="Ravi Jewellers"),
        )
        self.requests[request.id] = request
        return request

    async def accept(self, request_id: str) -> Optional[RequestDto]:
        return self._respond("accept", request_id, RequestStatus.ACCEPTED)

    async def decline(self, request_id: str) -> Optional[RequestDto]:
        return self._respond("decline", request_id, RequestStatus.DECLINED)

    def _respond(self, verb: str, request_id: str, status: RequestStatus) -> Optional[RequestDto]:
        self.calls.append((verb, request_id))
        if self.error:
            raise self.error
        existing = self.requests.get(request_id)
        if existing is None:
            raise ResourceNotFoundError("Request not found", 404)
        if existing.status != RequestStatus.PENDING:
            raise BadRequestError("This request has already been processed.", 400)
        updated = existing.with_status(status, existing.updated_at + 1)
        # the backend does not populate references on responses
        self.requests[request_id] = replace(updated, item=None, customer=None, seller=None)
        if self.omit_request:
            return None
        return self.requests[request_id]

    async def list_for_seller(self, status: Optional[str] = None) -> List[RequestDto]:
        self.calls.append(("list_for_seller", status))
        if self.error:
            raise self.error
        return [r for r in self.requests.values() if not status or r.status.value == status]

    async def list_for_customer(self, status: Optional[str] = None) -> List[RequestDto]:
        self.calls.append(("list_for_customer", status))
        if self.error:
            raise self.error
        return [r for r in self.requests.values() if not status or r.status.value == status]


class FakeNotificationsApi(NotificationsApi):
    def __init__(self):
        self.created: List[NotificationDraft] = []
        self.server: List[NotificationDto] = []
        self.calls: List[Tuple[str, Any]] = []
        self.fail_create = False
        self.refuse_create = False
        self.fail_list = False
        self.fail_mutations = False
        self._ids = itertools.count(1)

    async def create(self, draft: NotificationDraft) -> bool:
        self.calls.append(("create", draft))
        if self.fail_create:
            raise NetworkError("connection refused")
        if self.refuse_create:
            return False
        self.created.append(draft)
        self.server.insert(0, NotificationDto(
            id=f"n-{next(self._ids)}",
            title=draft.title,
            message=draft.message,
            timestamp=1_700_000_000_000,
            read=False,
            type=draft.type,
            recipient_id=draft.recipient_id,
            data=dict(draft.data),
        ))
        return True

    async def list_for_user(self) -> List[NotificationDto]:
        self.calls.append(("list_for_user", None))
        if self.fail_list:
            raise NetworkError("connection refused")
        return list(self.server)

    async def mark_read(self, notification_id: str) -> None:
        self.calls.append(("mark_read", notification_id))
        if self.fail_mutations:
            raise NetworkError("connection refused")
        self.server = [n.mark_read() if n.id == notification_id else n for n in self.server]

    async def mark_all_read(self) -> None:
        self.calls.append(("mark_all_read", None))
        if self.fail_mutations:
            raise NetworkError("connection refused")
        self.server = [n.mark_read() for n in self.server]

    async def delete(self, notification_id: str) -> None:
        self.calls.append(("delete", notification_id))
        if self.fail_mutations:
            raise NetworkError("connection refused")
        self.server = [n for n in self.server if n.id != notification_id]


class FakeAccountsApi(AccountsApi):
    def __init__(self, users: List[UserDto]):
        self.users = {u.id: u for u in users}
        self.passwords = {u.id: "secret" for u in users}
        self.current: Optional[str] = None
        self.deleted: List[str] = []
        self.referrals: List[str] = []
        self.removed_referrals: List[str] = []
        self.signups: List[Dict[str, Any]] = []
        self.error: Optional[Exception] = None

    async def login(self, email: str, password: str) -> Tuple[str, UserDto]:
        if self.error:
            raise self.error
        user = next((u for u in self.users.values() if u.email == email), None)
        if not user or self.passwords[user.id] != password:
            raise BadRequestError("Invalid email or password", 400)
        self.current = user.id
        return f"token-{user.id}", user

    async def get_profile(self) -> UserDto:
        if self.error:
            raise self.error
        return self.users[self.current]

    async def update_profile(self, fields: Dict[str, Any]) -> UserDto:
        if self.error:
            raise self.error
        user = self.users[self.current]
        user = replace(user, role=fields.get("role", user.role), brand_name=fields.get("brandName", user.brand_name))
        self.users[user.id] = user
        return user

    async def signup(self, fields: Dict[str, Any], password: str) -> Optional[str]:
        if self.error:
            raise self.error
        if any(u.email == fields["email"] for u in self.users.values()):
            raise BadRequestError("User already exists with this email", 400)
        self.signups.append(dict(fields))
        return f"user-{len(self.signups)}"

    async def add_seller_referral(self, seller_id: str) -> None:
        if self.error:
            raise self.error
        self.referrals.append(seller_id)

    async def remove_seller_referral(self, seller_id: str) -> None:
        if self.error:
            raise self.error
        self.removed_referrals.append(seller_id)

    async def delete_user(self, user_id: str) -> None:
        if self.error:
            raise self.error
        self.deleted.append(user_id)


class FakeInventoryApi(InventoryApi):
    def __init__(self, seller_id: str = "seller-1"):
        self.seller_id = seller_id
        self.items: Dict[str, InventoryItemDto] = {}
        self.calls: List[Tuple[str, Any]] = []
        self.error: Optional[Exception] = None
        self._ids = itertools.count(1)

    def _check(self, name: str, arg: Any) -> None:
        self.calls.append((name, arg))
        if self.error:
            raise self.error

    def _existing(self, item_id: str) -> InventoryItemDto:
        if item_id not in self.items:
            raise ResourceNotFoundError("Inventory item not found", 404)
        return self.items[item_id]

    async def add(self, draft: InventoryItemDraft) -> InventoryItemDto:
        self._check("add", draft)
        item = InventoryItemDto(id=f"inv-{next(self._ids)}", seller_id=self.seller_id, **vars(draft))
        self.items[item.id] = item
        return item

    async def list_for_seller(self, seller_id: str) -> List[InventoryItemDto]:
        self._check("list_for_seller", seller_id)
        return [i for i in self.items.values() if i.seller_id == seller_id]

    async def list_public(self, seller_id: str) -> List[InventoryItemDto]:
        self._check("list_public", seller_id)
        return [i for i in self.items.values() if i.seller_id == seller_id and i.is_visible]

    async def update(self, item_id: str, fields: Dict[str, Any]) -> InventoryItemDto:
        self._check("update", (item_id, fields))
        item = replace(self._existing(item_id), **fields)
        self.items[item_id] = item
        return item

    async def delete(self, item_id: str) -> None:
        self._check("delete", item_id)
        self._existing(item_id)
        del self.items[item_id]

    async def toggle_visibility(self, item_id: str) -> InventoryItemDto:
        self._check("toggle_visibility", item_id)
        item = self._existing(item_id)
        item = replace(item, is_visible=not item.is_visible)
        self.items[item_id] = item
        return item


@pytest.fixture
def customer() -> UserDto:
    return UserDto(id="customer-1", email="asha@example.com", role="customer", name="Asha", city="Pune")


@pytest.fixture
def seller() -> UserDto:
    return UserDto(id="seller-1", email="ravi@example.com", role="seller", name="Ravi", brand_name="Ravi Jewellers")


@pytest.fixture
def admin() -> UserDto:
    return UserDto(id="admin-1", email="admin@example.com", role="admin", name="Admin")


@pytest.fixture
def store() -> MarketplaceStore:
    return MarketplaceStore()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def notifications_api() -> FakeNotificationsApi:
    return FakeNotificationsApi()


@pytest.fixture
def requests_api() -> FakeRequestsApi:
    return FakeRequestsApi()


@pytest.fixture
def accounts_api(customer, seller, admin) -> FakeAccountsApi:
    return FakeAccountsApi([customer, seller, admin])


@pytest.fixture
def router(notifications_api, store, bus) -> NotificationRouter:
    router = NotificationRouter(api=notifications_api, store=store)
    router.attach(bus)
    return router


@pytest.fixture
def coordinator(requests_api, store, bus, router) -> RequestCoordinator:
    return RequestCoordinator(api=requests_api, store=store, bus=bus, router=router)


@pytest.fixture
def accounts(accounts_api, store, bus, router) -> AccountService:
    return AccountService(api=accounts_api, store=store, bus=bus, router=router)


@pytest.fixture
def inventory_api() -> FakeInventoryApi:
    return FakeInventoryApi()


@pytest.fixture
def inventory(inventory_api, store) -> InventoryService:
    return InventoryService(api=inventory_api, store=store)
