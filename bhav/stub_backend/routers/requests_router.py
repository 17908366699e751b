import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ...application.ports.requests_api import RequestStatus
from ...schemas.requests.request import RequestCreate
from ..security import get_current_user, get_state
from ..state import BackendState, iso_now

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/requests", tags=["Requests"])

ALREADY_PROCESSED = "This request has already been processed."


@router.post("")
def create_request(
    payload: RequestCreate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    state: BackendState = Depends(get_state),
):
    item = state.items.get(payload.item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    now = iso_now()
    record = {
        "_id": state.next_id("r"),
        "itemId": item["_id"],
        "customerId": current_user["_id"],
        "sellerId": item["sellerId"],
        "requestType": payload.request_type.value,
        "status": RequestStatus.PENDING.value,
        "capturedAmount": payload.captured_amount,
        "capturedAt": now,
        "quantity": payload.quantity,
        "message": payload.message,
        "createdAt": now,
        "updatedAt": now,
    }
    state.requests[record["_id"]] = record
    logger.info(f"Request {record['_id']} created by {current_user['_id']} for item {item['_id']}")
    return {"success": True, "message": "Request created successfully", "request": state.populated_request(record)}


def _respond(request_id: str, outcome: RequestStatus, current_user: Dict[str, Any], state: BackendState):
    record = state.requests.get(request_id)
    if not record:
        raise HTTPException(status_code=404, detail="Request not found")
    if record["sellerId"] != current_user["_id"]:
        raise HTTPException(status_code=403, detail="Only the seller can respond to this request")
    if record["status"] != RequestStatus.PENDING.value:
        raise HTTPException(status_code=400, detail=ALREADY_PROCESSED)
    record["status"] = outcome.value
    record["updatedAt"] = iso_now()
    logger.info(f"Request {request_id} {outcome.value}")
    return {"success": True, "message": f"Request {outcome.value} successfully", "request": state.populated_request(record)}


@router.patch("/{request_id}/accept")
def accept_request(
    request_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    state: BackendState = Depends(get_state),
):
    return _respond(request_id, RequestStatus.ACCEPTED, current_user, state)


@router.patch("/{request_id}/decline")
def decline_request(
    request_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    state: BackendState = Depends(get_state),
):
    return _respond(request_id, RequestStatus.DECLINED, current_user, state)


def _listing(state: BackendState, key: str, user_id: str, status: Optional[str]):
    records = [
        r for r in state.requests.values()
        if r[key] == user_id and (not status or r["status"] == status)
    ]
    records.sort(key=lambda r: r["createdAt"], reverse=True)
    return {"success": True, "requests": [state.populated_request(r) for r in records]}


@router.get("/seller")
def seller_requests(
    status: Optional[str] = Query(None),
    current_user: Dict[str, Any] = Depends(get_current_user),
    state: BackendState = Depends(get_state),
):
    return _listing(state, "sellerId", current_user["_id"], status)


@router.get("/customer")
def customer_requests(
    status: Optional[str] = Query(None),
    current_user: Dict[str, Any] = Depends(get_current_user),
    state: BackendState = Depends(get_state),
):
    return _listing(state, "customerId", current_user["_id"], status)
