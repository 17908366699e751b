import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException

from ...schemas.inventory.inventory import InventoryItemCreate, InventoryItemUpdate
from ..security import get_current_user, get_state
from ..state import BackendState, iso_now

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inventory", tags=["Inventory"])


def _owned_item(item_id: str, current_user: Dict[str, Any], state: BackendState) -> Dict[str, Any]:
    item = state.items.get(item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Inventory item not found")
    if item["sellerId"] != current_user["_id"] and current_user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Not authorized to modify this item")
    return item


def _seller_items(state: BackendState, seller_id: str) -> List[Dict[str, Any]]:
    seller = state.users.get(seller_id)
    if not seller or seller.get("role") != "seller":
        raise HTTPException(status_code=404, detail="Seller not found")
    items = [i for i in state.items.values() if i["sellerId"] == seller_id]
    return sorted(items, key=lambda i: (i["createdAt"], i["_id"]), reverse=True)


@router.post("")
def add_item(
    payload: InventoryItemCreate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    state: BackendState = Depends(get_state),
):
    if current_user.get("role") not in ("seller", "admin"):
        raise HTTPException(status_code=403, detail="Only sellers can add inventory items")
    fields = payload.model_dump(by_alias=True)
    product_name = fields.pop("productName")
    buy_premium, sell_premium = fields.pop("buyPremium"), fields.pop("sellPremium")
    item = state.add_item(current_user["_id"], product_name, buy_premium, sell_premium, **fields)
    logger.info(f"Inventory item {item['_id']} added by {current_user['_id']}")
    return {"success": True, "message": "Item added successfully", "item": item}


@router.get("/seller/{seller_id}")
def seller_inventory(
    seller_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    state: BackendState = Depends(get_state),
):
    if seller_id != current_user["_id"] and current_user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Not authorized to view this inventory")
    return {"success": True, "items": _seller_items(state, seller_id)}


@router.get("/public/{seller_id}")
def public_inventory(seller_id: str, state: BackendState = Depends(get_state)):
    items = [i for i in _seller_items(state, seller_id) if i["isVisible"]]
    return {"success": True, "items": items}


@router.put("/{item_id}")
def update_item(
    item_id: str,
    payload: InventoryItemUpdate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    state: BackendState = Depends(get_state),
):
    item = _owned_item(item_id, current_user, state)
    item.update(payload.model_dump(by_alias=True, exclude_none=True))
    item["updatedAt"] = iso_now()
    return {"success": True, "message": "Item updated successfully", "item": item}


@router.delete("/{item_id}")
def delete_item(
    item_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    state: BackendState = Depends(get_state),
):
    _owned_item(item_id, current_user, state)
    del state.items[item_id]
    logger.info(f"Inventory item {item_id} deleted by {current_user['_id']}")
    return {"success": True, "message": "Item deleted successfully"}


@router.patch("/{item_id}/toggle-visibility")
def toggle_visibility(
    item_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    state: BackendState = Depends(get_state),
):
    item = _owned_item(item_id, current_user, state)
    item["isVisible"] = not item["isVisible"]
    item["updatedAt"] = iso_now()
    state_label = "visible" if item["isVisible"] else "hidden"
    return {"success": True, "message": f"Item is now {state_label}", "item": item}
