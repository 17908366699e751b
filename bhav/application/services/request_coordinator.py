import logging
import math
import time
from dataclasses import dataclass, replace
from typing import Any, List, Optional

from ...exceptions import (
    MarketplaceApiError,
    OperationResult,
    UNEXPECTED_ERROR_MESSAGE,
    create_error_response,
    create_success_response,
    user_message,
)
from ..events import EventBus, RequestAccepted, RequestCreated, RequestDeclined
from ..ports.requests_api import RequestDraft, RequestDto, RequestsApi, RequestStatus, RequestType
from ..store import MarketplaceStore
from .notification_router import NotificationRouter

logger = logging.getLogger(__name__)

ALREADY_PROCESSED = "This request has already been processed."


def _now_ms() -> int:
    return int(time.time() * 1000)


def _valid_amount(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if math.isnan(amount) or math.isinf(amount) or amount <= 0:
        return None
    return amount


@dataclass
class RequestCoordinator:
    """Runs buy/sell requests through pending -> accepted | declined.

    Every transition calls the backend first and touches the local cache only
    after the backend confirmed it. Results are returned as ``OperationResult``;
    nothing raises to the caller.
    """

    api: RequestsApi
    store: MarketplaceStore
    bus: EventBus
    router: NotificationRouter

    async def create_request(
        self,
        item_id: Optional[str],
        request_type: Any,
        captured_amount: Any,
        quantity: Optional[str] = None,
        message: Optional[str] = None,
    ) -> OperationResult:
        user = self.store.user
        if not user:
            return create_error_response("User not authenticated.")
        if not item_id:
            return create_error_response("Item ID is required.")
        try:
            kind = RequestType(request_type)
        except ValueError:
            return create_error_response("Valid request type (buy or sell) is required.")
        amount = _valid_amount(captured_amount)
        if amount is None:
            return create_error_response("Valid captured amount is required.")

        duplicate = next(
            (
                r for r in self.store.requests
                if r.item_id == item_id
                and r.customer_id == user.id
                and r.request_type == kind
                and r.status == RequestStatus.PENDING
            ),
            None,
        )
        if duplicate:
            return create_error_response("You already have a pending request for this item.")

        draft = RequestDraft(item_id=item_id, request_type=kind, captured_amount=amount, quantity=quantity, message=message)
        logger.info(f"Creating {kind.value} request for item {item_id} amount={amount}")
        try:
            request = await self.api.create(draft)
        except MarketplaceApiError as e:
            logger.error(f"Error creating request: {e}")
            return create_error_response(
                user_message(e, "Failed to create request.", not_found="Item not found. Please try again.")
            )
        except Exception:
            logger.exception("Unexpected error creating request")
            return create_error_response(UNEXPECTED_ERROR_MESSAGE)

        self.store.upsert_request(request)
        await self.bus.publish(RequestCreated(request=request, customer=user))
        await self.router.refresh()
        return create_success_response(request=request, request_id=request.id)

    async def accept_request(self, request_id: str) -> OperationResult:
        return await self._respond(request_id, RequestStatus.ACCEPTED)

    async def decline_request(self, request_id: str) -> OperationResult:
        return await self._respond(request_id, RequestStatus.DECLINED)

    async def _respond(self, request_id: str, outcome: RequestStatus) -> OperationResult:
        verb = "accept" if outcome == RequestStatus.ACCEPTED else "decline"
        if not request_id:
            return create_error_response("Request ID is required.")
        cached = self.store.find_request(request_id)
        if cached and cached.is_terminal:
            return create_error_response(ALREADY_PROCESSED)

        call = self.api.accept if outcome == RequestStatus.ACCEPTED else self.api.decline
        try:
            confirmed = await call(request_id)
        except MarketplaceApiError as e:
            logger.error(f"Error trying to {verb} request {request_id}: {e}")
            return create_error_response(user_message(e, f"Failed to {verb} request."))
        except Exception:
            logger.exception(f"Unexpected error trying to {verb} request {request_id}")
            return create_error_response(UNEXPECTED_ERROR_MESSAGE)

        if confirmed is None:
            if cached is None:
                cached = await self._lookup_seller_request(request_id)
            if cached is None:
                logger.warning(f"Request {request_id} {outcome.value} but not found; customer not notified")
                await self.router.refresh()
                return create_success_response(request=None)
            confirmed = cached.with_status(outcome, _now_ms())
        elif confirmed.status != outcome:
            logger.warning(f"Backend answered {confirmed.status.value} for {verb} on request {request_id}")
            self.store.upsert_request(confirmed)
            return create_error_response(ALREADY_PROCESSED)
        elif cached is not None:
            confirmed = _fill_snapshots(confirmed, cached)

        self.store.upsert_request(confirmed)
        event = RequestAccepted(request=confirmed) if outcome == RequestStatus.ACCEPTED else RequestDeclined(request=confirmed)
        await self.bus.publish(event)
        await self.router.refresh()
        return create_success_response(request=confirmed)

    async def _lookup_seller_request(self, request_id: str) -> Optional[RequestDto]:
        try:
            requests = await self.api.list_for_seller(None)
        except Exception as e:
            logger.warning(f"Could not reload seller requests to find {request_id}: {e}")
            return None
        return next((r for r in requests if r.id == request_id), None)

    async def load_seller_requests(self, status: Optional[str] = None) -> OperationResult:
        return await self._load(self.api.list_for_seller, status, "seller")

    async def load_customer_requests(self, status: Optional[str] = None) -> OperationResult:
        return await self._load(self.api.list_for_customer, status, "customer")

    async def _load(self, call, status: Optional[str], audience: str) -> OperationResult:
        try:
            requests = await call(status)
        except MarketplaceApiError as e:
            logger.error(f"Error fetching {audience} requests: {e}")
            return create_error_response(user_message(e, f"Failed to fetch {audience} requests."))
        except Exception:
            logger.exception(f"Unexpected error fetching {audience} requests")
            return create_error_response(f"Failed to fetch {audience} requests.")
        self.store.set_requests(requests)
        return create_success_response(requests=requests)

    def get_request(self, request_id: str) -> Optional[RequestDto]:
        return self.store.find_request(request_id)

    def requests_for_seller(self, seller_id: str) -> List[RequestDto]:
        return [r for r in self.store.requests if r.seller_id == seller_id]

    def requests_for_customer(self, customer_id: str) -> List[RequestDto]:
        return [r for r in self.store.requests if r.customer_id == customer_id]

    def pending_for_seller(self, seller_id: str) -> List[RequestDto]:
        return [r for r in self.requests_for_seller(seller_id) if r.status == RequestStatus.PENDING]


def _fill_snapshots(confirmed: RequestDto, cached: RequestDto) -> RequestDto:
    return replace(
        confirmed,
        item=confirmed.item or cached.item,
        customer=confirmed.customer or cached.customer,
        seller=confirmed.seller or cached.seller,
    )
