import logging
from dataclasses import dataclass, replace
from typing import Any, Optional

from ...exceptions import (
    MarketplaceApiError,
    OperationResult,
    UNEXPECTED_ERROR_MESSAGE,
    create_error_response,
    create_success_response,
    user_message,
)
from ..events import DealerContacted, EventBus, RoleChanged, SellerReferralAdded, UserDeleted
from ..ports.accounts_api import AccountsApi, UserDto
from ..store import MarketplaceStore
from .notification_router import NotificationRouter

logger = logging.getLogger(__name__)

DEFAULT_MAX_SELLER_REFERRALS = 15
SIGNUP_ROLES = ("customer", "seller")


@dataclass
class AccountService:
    api: AccountsApi
    store: MarketplaceStore
    bus: EventBus
    router: NotificationRouter
    max_seller_referrals: int = DEFAULT_MAX_SELLER_REFERRALS

    async def login(self, email: str, password: str) -> OperationResult:
        if not email or not password:
            return create_error_response("Email and password are required.")
        try:
            token, user = await self.api.login(email, password)
        except MarketplaceApiError as e:
            logger.error(f"Login API error: {e}")
            return create_error_response(user_message(e, "Login failed. Please try again."))
        except Exception:
            logger.exception("Unexpected login error")
            return create_error_response("Login failed. Please try again.")

        self.store.set_session(user, token)
        # a failed notification load never fails the login
        await self.router.refresh()
        return create_success_response(user=user, token=token)

    async def signup(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        role: str = "customer",
        **profile: Any,
    ) -> OperationResult:
        """Register an account. The new user still has to log in."""
        if not email or not password:
            return create_error_response("Email and password are required.")
        if role not in SIGNUP_ROLES:
            return create_error_response("Role must be customer or seller.")
        fields = {"email": email.strip(), "name": name, "role": role, **profile}
        try:
            user_id = await self.api.signup(fields, password)
        except MarketplaceApiError as e:
            logger.error(f"Signup API error: {e}")
            return create_error_response(user_message(e, "Signup failed"))
        except Exception:
            logger.exception("Unexpected signup error")
            return create_error_response("Signup failed. Please try again.")
        logger.info(f"Signed up {email} as {role}")
        return create_success_response(user_id=user_id, message="Signup successful")

    def logout(self) -> None:
        self.store.clear_session()

    async def refresh_profile(self) -> OperationResult:
        try:
            user = await self.api.get_profile()
        except Exception as e:
            logger.warning(f"Profile refresh failed, signing out: {e}")
            self.store.clear_session()
            return create_error_response("Session expired. Please log in again.")
        self.store.set_session(user)
        await self.router.refresh()
        return create_success_response(user=user)

    async def contact_dealer(self, dealer: UserDto) -> OperationResult:
        customer = self.store.user
        if not customer:
            return create_error_response("User not authenticated.")
        await self.bus.publish(DealerContacted(customer=customer, dealer=dealer))
        self.store.add_contacted_dealer(dealer.id)
        await self.router.refresh()
        return create_success_response(dealer_id=dealer.id)

    async def upgrade_to_seller(self, brand_name: str) -> OperationResult:
        user = self.store.user
        if not user:
            return create_error_response("User not authenticated.")
        if user.role == "seller":
            return create_error_response("You are already a seller.")
        previous_role = user.role
        try:
            updated = await self.api.update_profile({"role": "seller", "brandName": brand_name})
        except MarketplaceApiError as e:
            logger.error(f"Error updating user: {e}")
            return create_error_response(user_message(e, "Failed to update user profile"))
        except Exception:
            logger.exception("Unexpected error updating user")
            return create_error_response("Failed to update user profile")

        self.store.set_session(updated)
        if previous_role == "customer":
            await self.bus.publish(RoleChanged(user=updated, previous_role=previous_role, new_role="seller"))
            await self.router.refresh()
        return create_success_response(user=updated)

    async def add_seller_referral(self, seller: UserDto) -> OperationResult:
        customer = self.store.user
        if not customer:
            return create_error_response("User not authenticated.")
        if seller.id in customer.seller_referrals:
            return create_error_response("This seller is already connected.")
        if len(customer.seller_referrals) >= self.max_seller_referrals:
            return create_error_response(
                f"You have reached the maximum limit of {self.max_seller_referrals} sellers. "
                "Please remove one to add another."
            )
        try:
            await self.api.add_seller_referral(seller.id)
        except MarketplaceApiError as e:
            logger.error(f"Error adding seller referral: {e}")
            return create_error_response(user_message(e, "Failed to add seller referral.", not_found="Seller not found."))
        except Exception:
            logger.exception("Unexpected error adding seller referral")
            return create_error_response("Failed to add seller referral.")

        customer = replace(customer, seller_referrals=[*customer.seller_referrals, seller.id])
        self.store.set_session(customer)
        await self.bus.publish(SellerReferralAdded(customer=customer, seller=seller))
        await self.router.refresh()
        return create_success_response(seller_id=seller.id)

    async def remove_seller_referral(self, seller_id: str) -> OperationResult:
        customer = self.store.user
        if not customer:
            return create_error_response("User not authenticated.")
        if seller_id not in customer.seller_referrals:
            return create_error_response("This seller is not connected.")
        try:
            await self.api.remove_seller_referral(seller_id)
        except MarketplaceApiError as e:
            logger.error(f"Error removing seller referral: {e}")
            return create_error_response(user_message(e, "Failed to remove seller referral.", not_found="Seller not found."))
        except Exception:
            logger.exception("Unexpected error removing seller referral")
            return create_error_response("Failed to remove seller referral.")

        remaining = [s for s in customer.seller_referrals if s != seller_id]
        self.store.set_session(replace(customer, seller_referrals=remaining))
        return create_success_response(seller_id=seller_id)

    async def delete_user(self, user: UserDto) -> OperationResult:
        if user.role == "admin":
            return create_error_response("Admin users cannot be deleted.")
        if self.store.viewer_id == user.id:
            return create_error_response("Cannot delete your own account while logged in.")
        try:
            await self.api.delete_user(user.id)
        except MarketplaceApiError as e:
            logger.error(f"Error deleting user: {e}")
            return create_error_response(user_message(e, "Failed to delete user from server.", not_found="User not found."))
        except Exception:
            logger.exception("Unexpected error deleting user")
            return create_error_response(UNEXPECTED_ERROR_MESSAGE)

        await self.bus.publish(UserDeleted(user=user, connected_seller_ids=list(user.seller_referrals)))
        await self.router.refresh()
        return create_success_response(user_id=user.id)
