# bhav/schemas/users/user.py
from typing import List, Optional

from pydantic import AliasChoices, Field

from ...application.ports.accounts_api import UserDto
from ..common.common import CamelModel, IdStr


class UserSchema(CamelModel):
    id: IdStr = Field(validation_alias=AliasChoices("_id", "id"))
    email: str
    role: str = "customer"
    name: Optional[str] = Field(default=None, validation_alias=AliasChoices("fullName", "name"))
    phone: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    brand_name: Optional[str] = None
    is_premium: bool = False
    seller_referrals: List[IdStr] = []

    def to_dto(self) -> UserDto:
        return UserDto(
            id=self.id,
            email=self.email,
            role=self.role,
            name=self.name,
            phone=self.phone,
            city=self.city,
            state=self.state,
            brand_name=self.brand_name,
            is_premium=self.is_premium,
            seller_referrals=list(self.seller_referrals),
        )


class LoginRequest(CamelModel):
    email: str
    password: str


class LoginResponse(CamelModel):
    token: str
    user: UserSchema


class ProfileResponse(CamelModel):
    success: bool = True
    user: UserSchema


class SellerReferralRequest(CamelModel):
    seller_id: str


class ProfileUpdate(CamelModel):
    role: Optional[str] = None
    brand_name: Optional[str] = None
    name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    phone: Optional[str] = None


class SignupRequest(CamelModel):
    email: str
    password: str
    name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("fullName", "name"), serialization_alias="fullName"
    )
    role: str = "customer"
    phone: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    brand_name: Optional[str] = None


class SignupResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    user_id: Optional[IdStr] = None
