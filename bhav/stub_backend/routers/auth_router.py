import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from ...schemas.users.user import LoginRequest, ProfileUpdate, SellerReferralRequest, SignupRequest
from ..security import create_access_token, get_current_user, get_state
from ..state import BackendState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])
users_router = APIRouter(prefix="/users", tags=["Users"])


@router.post("/login")
def login(payload: LoginRequest, state: BackendState = Depends(get_state)):
    user = state.find_user_by_email(payload.email)
    if not user or not state.check_password(user["_id"], payload.password):
        logger.warning(f"Failed login for {payload.email}")
        raise HTTPException(status_code=400, detail="Invalid email or password")
    logger.info(f"User {user['_id']} logged in")
    return {"token": create_access_token(user["_id"]), "user": state.public_user(user)}


@router.post("/signup", status_code=201)
def signup(payload: SignupRequest, state: BackendState = Depends(get_state)):
    if state.find_user_by_email(payload.email):
        raise HTTPException(status_code=400, detail="User already exists with this email")
    if payload.role not in ("customer", "seller"):
        raise HTTPException(status_code=400, detail="Invalid role")
    user = state.add_user(
        payload.email.strip(),
        payload.password,
        role=payload.role,
        name=payload.name,
        brand_name=payload.brand_name,
        phone=payload.phone,
        city=payload.city,
        state=payload.state,
    )
    logger.info(f"User {user['_id']} signed up as {payload.role}")
    return {"success": True, "message": "Signup successful", "userId": user["_id"]}


@router.delete("/users/{user_id}")
def delete_user(
    user_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    state: BackendState = Depends(get_state),
):
    if current_user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    target = state.users.get(user_id)
    if not target:
        raise HTTPException(status_code=404, detail="User not found")
    if target.get("role") == "admin":
        raise HTTPException(status_code=400, detail="Admin users cannot be deleted.")
    del state.users[user_id]
    state.passwords.pop(user_id, None)
    logger.info(f"User {user_id} deleted by {current_user['_id']}")
    return {"success": True, "message": "User deleted successfully"}


@users_router.get("/profile")
def get_profile(current_user: Dict[str, Any] = Depends(get_current_user), state: BackendState = Depends(get_state)):
    return {"success": True, "user": state.public_user(current_user)}


@users_router.put("/profile")
def update_profile(
    payload: ProfileUpdate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    state: BackendState = Depends(get_state),
):
    changes = payload.model_dump(by_alias=True, exclude_none=True)
    if "name" in changes:
        changes["fullName"] = changes.pop("name")
    current_user.update(changes)
    return {"success": True, "user": state.public_user(current_user)}


@users_router.post("/referral/add")
def add_referral(
    payload: SellerReferralRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    state: BackendState = Depends(get_state),
):
    seller = state.users.get(payload.seller_id)
    if not seller or seller.get("role") != "seller":
        raise HTTPException(status_code=404, detail="Seller not found")
    referrals = current_user.setdefault("sellerReferrals", [])
    if payload.seller_id in referrals:
        raise HTTPException(status_code=400, detail="This seller is already connected.")
    referrals.append(payload.seller_id)
    return {"success": True, "message": "Seller added successfully"}


@users_router.delete("/referral/{seller_id}")
def remove_referral(
    seller_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
):
    referrals = current_user.setdefault("sellerReferrals", [])
    if seller_id not in referrals:
        raise HTTPException(status_code=404, detail="Seller referral not found")
    referrals.remove(seller_id)
    return {"success": True, "message": "Seller removed successfully"}
