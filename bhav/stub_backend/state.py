"""In-memory state for the stub marketplace backend.

Records are kept in their wire shape (camelCase keys, Mongo-style ``_id``)
so the routers can return them without a mapping layer.
"""
import itertools
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class BackendState:
    def __init__(self) -> None:
        self.users: Dict[str, Dict[str, Any]] = {}
        self.passwords: Dict[str, str] = {}
        self.items: Dict[str, Dict[str, Any]] = {}
        self.requests: Dict[str, Dict[str, Any]] = {}
        self.notifications: List[Dict[str, Any]] = []
        # flip to make POST /notifications/create answer 503
        self.notifications_unavailable = False
        self._ids = itertools.count(1)

    def next_id(self, prefix: str) -> str:
        return f"{prefix}{next(self._ids):06d}"

    # Seeding

    def add_user(
        self,
        email: str,
        password: str,
        role: str = "customer",
        name: Optional[str] = None,
        brand_name: Optional[str] = None,
        **extra: Any,
    ) -> Dict[str, Any]:
        user = {
            "_id": self.next_id("u"),
            "email": email,
            "role": role,
            "fullName": name,
            "brandName": brand_name,
            "isPremium": False,
            "sellerReferrals": [],
            **extra,
        }
        self.users[user["_id"]] = user
        self.passwords[user["_id"]] = password
        return user

    def add_item(
        self,
        seller_id: str,
        product_name: str,
        buy_premium: Optional[float] = 0.0,
        sell_premium: Optional[float] = 0.0,
        **extra: Any,
    ) -> Dict[str, Any]:
        now = iso_now()
        item = {
            "_id": self.next_id("i"),
            "sellerId": seller_id,
            "productName": product_name,
            "productType": None,
            "buyPremium": buy_premium,
            "sellPremium": sell_premium,
            "isBuyPremiumEnabled": True,
            "isSellPremiumEnabled": True,
            "isVisible": True,
            "description": None,
            "createdAt": now,
            "updatedAt": now,
            **extra,
        }
        self.items[item["_id"]] = item
        return item

    # Lookups

    def find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        wanted = email.strip().lower()
        return next((u for u in self.users.values() if u["email"].lower() == wanted), None)

    def check_password(self, user_id: str, password: str) -> bool:
        return self.passwords.get(user_id) == password

    @staticmethod
    def is_visible(record: Dict[str, Any], user_id: str) -> bool:
        return bool(record.get("isGlobal")) or not record.get("recipientId") or record["recipientId"] == user_id

    def visible_notifications(self, user_id: str) -> List[Dict[str, Any]]:
        visible = [n for n in self.notifications if self.is_visible(n, user_id)]
        return sorted(visible, key=lambda n: (n["createdAt"], n["_id"]), reverse=True)

    def find_notification(self, notification_id: str) -> Optional[Dict[str, Any]]:
        return next((n for n in self.notifications if n["_id"] == notification_id), None)

    # Serialization

    @staticmethod
    def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
        return dict(user)

    def populated_request(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Replace item, customer and seller ids by their documents."""
        populated = dict(record)
        item = self.items.get(record["itemId"])
        if item:
            populated["itemId"] = {k: item[k] for k in ("_id", "productName", "buyPremium", "sellPremium")}
        for key in ("customerId", "sellerId"):
            user = self.users.get(record[key])
            if user:
                populated[key] = {
                    "_id": user["_id"],
                    "fullName": user.get("fullName"),
                    "email": user.get("email"),
                    "brandName": user.get("brandName"),
                }
        return populated
