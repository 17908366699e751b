# Services package (re-export feature modules for stable imports)
from .notification_router import NotificationRouter
from .request_coordinator import RequestCoordinator
from .account_service import AccountService
from .inventory_service import InventoryService

__all__ = [
    "NotificationRouter",
    "RequestCoordinator",
    "AccountService",
    "InventoryService",
]
