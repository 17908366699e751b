from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple


@dataclass
class UserDto:
    id: str
    email: str
    role: str
    name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    brand_name: Optional[str] = None
    is_premium: bool = False
    seller_referrals: List[str] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.name or self.email


class AccountsApi(Protocol):
    async def login(self, email: str, password: str) -> Tuple[str, UserDto]:
        ...

    async def get_profile(self) -> UserDto:
        ...

    async def update_profile(self, fields: Dict[str, Any]) -> UserDto:
        ...

    async def signup(self, fields: Dict[str, Any], password: str) -> Optional[str]:
        ...

    async def add_seller_referral(self, seller_id: str) -> None:
        ...

    async def remove_seller_referral(self, seller_id: str) -> None:
        ...

    async def delete_user(self, user_id: str) -> None:
        ...
