from typing import Any, Dict, Optional, Tuple

from ...application.ports.accounts_api import AccountsApi, UserDto
from ...schemas.users.user import (
    LoginRequest,
    LoginResponse,
    ProfileResponse,
    SellerReferralRequest,
    SignupRequest,
    SignupResponse,
)
from .client import BhavHttpClient, parse_body


class HttpAccountsApi(AccountsApi):
    def __init__(self, http: BhavHttpClient) -> None:
        self.http = http

    async def login(self, email: str, password: str) -> Tuple[str, UserDto]:
        payload = LoginRequest(email=email, password=password)
        body = await self.http.post("/auth/login", json=payload.model_dump(by_alias=True))
        response = parse_body(LoginResponse, body)
        return response.token, response.user.to_dto()

    async def get_profile(self) -> UserDto:
        body = await self.http.get("/users/profile")
        return parse_body(ProfileResponse, body).user.to_dto()

    async def update_profile(self, fields: Dict[str, Any]) -> UserDto:
        body = await self.http.put("/users/profile", json=fields)
        return parse_body(ProfileResponse, body).user.to_dto()

    async def signup(self, fields: Dict[str, Any], password: str) -> Optional[str]:
        payload = SignupRequest(**fields, password=password)
        body = await self.http.post("/auth/signup", json=payload.model_dump(by_alias=True, exclude_none=True))
        return parse_body(SignupResponse, body).user_id

    async def add_seller_referral(self, seller_id: str) -> None:
        payload = SellerReferralRequest(seller_id=seller_id)
        await self.http.post("/users/referral/add", json=payload.model_dump(by_alias=True))

    async def remove_seller_referral(self, seller_id: str) -> None:
        await self.http.delete(f"/users/referral/{seller_id}")

    async def delete_user(self, user_id: str) -> None:
        await self.http.delete(f"/auth/users/{user_id}")
