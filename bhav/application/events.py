"""Domain events emitted by the coordinator and account service.

The bus delivers events in-process to async subscribers. Subscribers run in
registration order; a failing subscriber is logged and does not stop delivery
to the others or propagate to the publisher.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Type

from .ports.accounts_api import UserDto
from .ports.requests_api import RequestDto

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DomainEvent:
    pass


@dataclass(frozen=True)
class RequestCreated(DomainEvent):
    request: RequestDto
    customer: Optional[UserDto] = None


@dataclass(frozen=True)
class RequestAccepted(DomainEvent):
    request: RequestDto


@dataclass(frozen=True)
class RequestDeclined(DomainEvent):
    request: RequestDto


@dataclass(frozen=True)
class DealerContacted(DomainEvent):
    customer: UserDto
    dealer: UserDto


@dataclass(frozen=True)
class RoleChanged(DomainEvent):
    user: UserDto
    previous_role: str
    new_role: str


@dataclass(frozen=True)
class UserDeleted(DomainEvent):
    user: UserDto
    connected_seller_ids: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class SellerReferralAdded(DomainEvent):
    customer: UserDto
    seller: UserDto


Handler = Callable[[DomainEvent], Awaitable[None]]


class EventBus:
    """Routes published events to the handlers subscribed for their type."""

    def __init__(self) -> None:
        self._channels: Dict[Type[DomainEvent], List[Handler]] = {}

    def subscribe(self, event_type: Type[DomainEvent], handler: Handler) -> Callable[[], None]:
        group = self._channels.setdefault(event_type, [])
        group.append(handler)

        def unsubscribe() -> None:
            if handler in group:
                group.remove(handler)

        return unsubscribe

    async def publish(self, event: DomainEvent) -> None:
        for handler in list(self._channels.get(type(event), ())):
            try:
                await handler(event)
            except Exception:
                logger.exception(f"Event handler failed for {type(event).__name__}")


__all__ = [
    "DomainEvent",
    "RequestCreated",
    "RequestAccepted",
    "RequestDeclined",
    "DealerContacted",
    "RoleChanged",
    "UserDeleted",
    "SellerReferralAdded",
    "EventBus",
]
