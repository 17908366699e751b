import logging
import math
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Optional

from ...exceptions import (
    MarketplaceApiError,
    OperationResult,
    create_error_response,
    create_success_response,
    user_message,
)
from ..ports.inventory_api import InventoryApi, InventoryItemDraft, InventoryItemDto
from ..store import MarketplaceStore

logger = logging.getLogger(__name__)

ITEM_NOT_FOUND = "Inventory item not found."
EDITABLE_FIELDS = frozenset(f.name for f in fields(InventoryItemDraft))


def _premium_error(values: Dict[str, Any]) -> Optional[str]:
    for key in ("buy_premium", "sell_premium"):
        value = values.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            return "Premiums must be numbers."
    return None


@dataclass
class InventoryService:
    """Seller inventory: the items buy/sell requests point at.

    A seller's own listing is cached in the store; public listings of other
    sellers are returned to the caller only.
    """

    api: InventoryApi
    store: MarketplaceStore

    def _seller_check(self) -> Optional[OperationResult]:
        user = self.store.user
        if not user:
            return create_error_response("User not authenticated.")
        if user.role not in ("seller", "admin"):
            return create_error_response("Only sellers can manage inventory.")
        return None

    async def add_item(self, draft: InventoryItemDraft) -> OperationResult:
        denied = self._seller_check()
        if denied is not None:
            return denied
        if not draft.product_name or not draft.product_name.strip():
            return create_error_response("Product name is required.")
        invalid = _premium_error(vars(draft))
        if invalid:
            return create_error_response(invalid)
        try:
            item = await self.api.add(draft)
        except MarketplaceApiError as e:
            logger.error(f"Error adding inventory item: {e}")
            return create_error_response(user_message(e, "Failed to add inventory item."))
        except Exception:
            logger.exception("Unexpected error adding inventory item")
            return create_error_response("Failed to add inventory item.")
        self.store.upsert_inventory_item(item)
        return create_success_response(item=item)

    async def load_seller_items(self, seller_id: Optional[str] = None) -> OperationResult:
        seller_id = self.store.viewer_id if seller_id is None else seller_id
        if not isinstance(seller_id, str) or not seller_id:
            return create_error_response("Invalid sellerId provided.")
        try:
            items = await self.api.list_for_seller(seller_id)
        except MarketplaceApiError as e:
            logger.error(f"Error fetching inventory items for {seller_id}: {e}")
            return create_error_response(user_message(e, "Failed to fetch inventory items.", not_found="Seller not found."))
        except Exception:
            logger.exception(f"Unexpected error fetching inventory items for {seller_id}")
            return create_error_response("Failed to fetch inventory items.")
        if seller_id == self.store.viewer_id:
            self.store.set_inventory(items)
        return create_success_response(items=items)

    async def load_public_items(self, seller_id: str) -> OperationResult:
        if not isinstance(seller_id, str) or not seller_id:
            return create_error_response("Invalid sellerId provided.")
        try:
            items = await self.api.list_public(seller_id)
        except MarketplaceApiError as e:
            logger.error(f"Error fetching public inventory items for {seller_id}: {e}")
            return create_error_response(
                user_message(e, "Failed to fetch public inventory items.", not_found="Seller not found.")
            )
        except Exception:
            logger.exception(f"Unexpected error fetching public inventory items for {seller_id}")
            return create_error_response("Failed to fetch public inventory items.")
        return create_success_response(items=items)

    async def update_item(self, item_id: str, **changes: Any) -> OperationResult:
        denied = self._seller_check()
        if denied is not None:
            return denied
        if not item_id:
            return create_error_response("Item ID is required.")
        unknown = sorted(set(changes) - EDITABLE_FIELDS)
        if unknown:
            return create_error_response(f"Unknown inventory fields: {', '.join(unknown)}")
        if "product_name" in changes and not (changes["product_name"] or "").strip():
            return create_error_response("Product name is required.")
        invalid = _premium_error(changes)
        if invalid:
            return create_error_response(invalid)
        try:
            item = await self.api.update(item_id, changes)
        except MarketplaceApiError as e:
            logger.error(f"Error updating inventory item {item_id}: {e}")
            return create_error_response(user_message(e, "Failed to update inventory item.", not_found=ITEM_NOT_FOUND))
        except Exception:
            logger.exception(f"Unexpected error updating inventory item {item_id}")
            return create_error_response("Failed to update inventory item.")
        self.store.upsert_inventory_item(item)
        return create_success_response(item=item)

    async def delete_item(self, item_id: str) -> OperationResult:
        denied = self._seller_check()
        if denied is not None:
            return denied
        if not item_id:
            return create_error_response("Item ID is required.")
        try:
            await self.api.delete(item_id)
        except MarketplaceApiError as e:
            logger.error(f"Error deleting inventory item {item_id}: {e}")
            return create_error_response(user_message(e, "Failed to delete inventory item.", not_found=ITEM_NOT_FOUND))
        except Exception:
            logger.exception(f"Unexpected error deleting inventory item {item_id}")
            return create_error_response("Failed to delete inventory item.")
        self.store.remove_inventory_item(item_id)
        return create_success_response(item_id=item_id)

    async def toggle_visibility(self, item_id: str) -> OperationResult:
        denied = self._seller_check()
        if denied is not None:
            return denied
        if not item_id:
            return create_error_response("Item ID is required.")
        try:
            item = await self.api.toggle_visibility(item_id)
        except MarketplaceApiError as e:
            logger.error(f"Error toggling inventory item visibility {item_id}: {e}")
            return create_error_response(
                user_message(e, "Failed to toggle inventory item visibility.", not_found=ITEM_NOT_FOUND)
            )
        except Exception:
            logger.exception(f"Unexpected error toggling inventory item visibility {item_id}")
            return create_error_response("Failed to toggle inventory item visibility.")
        self.store.upsert_inventory_item(item)
        return create_success_response(item=item)

    def get_item(self, item_id: str) -> Optional[InventoryItemDto]:
        return next((i for i in self.store.inventory if i.id == item_id), None)

    def visible_items(self) -> List[InventoryItemDto]:
        return [i for i in self.store.inventory if i.is_visible]
