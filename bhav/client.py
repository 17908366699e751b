"""Wiring for the marketplace client.

``create_client`` builds the store, event bus, notification router, request
coordinator, account service and inventory service on top of one shared HTTP
client.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from .application.events import EventBus
from .application.services.account_service import AccountService
from .application.services.inventory_service import InventoryService
from .application.services.notification_router import NotificationRouter
from .application.services.request_coordinator import RequestCoordinator
from .application.store import MarketplaceStore
from .core.config import Settings, get_settings
from .infrastructure.http.accounts_api_http import HttpAccountsApi
from .infrastructure.http.client import BhavHttpClient
from .infrastructure.http.inventory_api_http import HttpInventoryApi
from .infrastructure.http.notifications_api_http import HttpNotificationsApi
from .infrastructure.http.requests_api_http import HttpRequestsApi

logger = logging.getLogger(__name__)


@dataclass
class MarketplaceClient:
    store: MarketplaceStore
    bus: EventBus
    http: BhavHttpClient
    notifications: NotificationRouter
    requests: RequestCoordinator
    accounts: AccountService
    inventory: InventoryService

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> "MarketplaceClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def create_client(
    config: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    base_url: Optional[str] = None,
) -> MarketplaceClient:
    config = config or get_settings()
    store = MarketplaceStore()
    bus = EventBus()
    http = BhavHttpClient(
        base_url=base_url or config.api_base_url,
        timeout=config.HTTP_TIMEOUT_SECONDS,
        token_provider=lambda: store.token,
        transport=transport,
    )
    router = NotificationRouter(api=HttpNotificationsApi(http, priority=config.NOTIFICATION_PRIORITY), store=store)
    router.attach(bus)
    coordinator = RequestCoordinator(api=HttpRequestsApi(http), store=store, bus=bus, router=router)
    accounts = AccountService(
        api=HttpAccountsApi(http),
        store=store,
        bus=bus,
        router=router,
        max_seller_referrals=config.MAX_SELLER_REFERRALS,
    )
    inventory = InventoryService(api=HttpInventoryApi(http), store=store)
    logger.info(f"Marketplace client ready for {base_url or config.api_base_url}")
    return MarketplaceClient(
        store=store,
        bus=bus,
        http=http,
        notifications=router,
        requests=coordinator,
        accounts=accounts,
        inventory=inventory,
    )
