import asyncio
import logging
import math
from dataclasses import replace

import pytest

from bhav.application.events import EventBus
from bhav.application.ports.notifications_api import NotificationType
from bhav.application.ports.requests_api import RequestStatus, RequestType
from bhav.application.services.notification_router import NotificationRouter
from bhav.application.services.request_coordinator import ALREADY_PROCESSED, RequestCoordinator
from bhav.application.store import MarketplaceStore
from bhav.exceptions import BadRequestError, NetworkError, ServerError


async def _create(coordinator, store, customer, request_type="buy", amount=65000.5):
    store.set_session(customer, "token-customer")
    result = await coordinator.create_request("item-1", request_type, amount, quantity="10g")
    assert result.success, result.error
    return result.get("request")


@pytest.mark.asyncio
async def test_create_requires_signed_in_user(coordinator, requests_api):
    result = await coordinator.create_request("item-1", "buy", 100)
    assert not result
    assert result.error == "User not authenticated."
    assert requests_api.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "item_id, request_type, amount, expected",
    [
        ("", "buy", 100, "Item ID is required."),
        (None, "buy", 100, "Item ID is required."),
        ("item-1", "rent", 100, "Valid request type (buy or sell) is required."),
        ("item-1", None, 100, "Valid request type (buy or sell) is required."),
        ("item-1", "buy", None, "Valid captured amount is required."),
        ("item-1", "buy", "abc", "Valid captured amount is required."),
        ("item-1", "buy", math.nan, "Valid captured amount is required."),
        ("item-1", "buy", 0, "Valid captured amount is required."),
        ("item-1", "buy", -5, "Valid captured amount is required."),
        ("item-1", "buy", True, "Valid captured amount is required."),
        ("item-1", "buy", 10 ** 400, "Valid captured amount is required."),
    ],
)
async def test_create_validates_locally_before_any_call(
    coordinator, store, requests_api, customer, item_id, request_type, amount, expected
):
    store.set_session(customer, "token-customer")
    result = await coordinator.create_request(item_id, request_type, amount)
    assert result.error == expected
    assert requests_api.calls == []
    assert store.requests == []


@pytest.mark.asyncio
async def test_create_caches_request_and_notifies_seller_once(coordinator, store, notifications_api, customer):
    request = await _create(coordinator, store, customer)

    assert request.status == RequestStatus.PENDING
    assert store.requests == [request]

    assert len(notifications_api.created) == 1
    draft = notifications_api.created[0]
    assert draft.type == NotificationType.BUY_REQUEST
    assert draft.recipient_id == "seller-1"
    assert draft.title == "New Request"
    assert draft.message == "Asha has requested to buy Gold 24K 10g."
    assert draft.data["requestId"] == request.id
    assert draft.data["capturedAmount"] == 65000.5
    assert draft.data["customer"]["email"] == "asha@example.com"
    assert draft.data["item"]["productName"] == "Gold 24K 10g"

    # refreshed from the backend: visible to the seller only
    assert len(store.notifications) == 1
    assert store.unread_count == 0


@pytest.mark.asyncio
async def test_create_logs_preformatted_message(coordinator, store, customer, caplog):
    caplog.set_level(logging.INFO, logger="bhav.application.services.request_coordinator")
    await _create(coordinator, store, customer, amount=100)

    [record] = [r for r in caplog.records if r.name == "bhav.application.services.request_coordinator"]
    assert record.getMessage() == "Creating buy request for item item-1 amount=100.0"
    assert record.args == ()


@pytest.mark.asyncio
async def test_create_result_carries_request_id(coordinator, store, customer):
    store.set_session(customer, "token-customer")
    result = await coordinator.create_request("item-1", RequestType.SELL, "250.75")
    assert result.get("request_id") == result.get("request").id
    assert result.get("request").captured_amount == 250.75


@pytest.mark.asyncio
async def test_sell_request_notifies_with_sell_type(coordinator, store, notifications_api, customer):
    await _create(coordinator, store, customer, request_type="sell")
    assert notifications_api.created[0].type == NotificationType.SELL_REQUEST
    assert notifications_api.created[0].message == "Asha has requested to sell Gold 24K 10g."


@pytest.mark.asyncio
async def test_duplicate_pending_request_is_rejected(coordinator, store, requests_api, customer):
    await _create(coordinator, store, customer)
    result = await coordinator.create_request("item-1", "buy", 100)
    assert result.error == "You already have a pending request for this item."
    assert len([c for c in requests_api.calls if c[0] == "create"]) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, expected",
    [
        (NetworkError("timeout"), "Network error. Please check your internet connection."),
        (ServerError(None, 502), "Server error. Please try again later."),
        (BadRequestError("Price moved, please retry", 400), "Price moved, please retry"),
        (BadRequestError(None, 400), "Failed to create request."),
    ],
)
async def test_create_maps_backend_errors(coordinator, store, requests_api, notifications_api, customer, error, expected):
    store.set_session(customer, "token-customer")
    requests_api.error = error
    result = await coordinator.create_request("item-1", "buy", 100)
    assert result.error == expected
    assert store.requests == []
    assert notifications_api.created == []


@pytest.mark.asyncio
async def test_create_unknown_item(coordinator, store, customer):
    store.set_session(customer, "token-customer")
    result = await coordinator.create_request("item-404", "buy", 100)
    assert result.error == "Item not found. Please try again."


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "request_type, accept, expected_type, title, verb",
    [
        ("buy", True, NotificationType.BUY_REQUEST_ACCEPTED, "Request Accepted", "accepted"),
        ("buy", False, NotificationType.BUY_REQUEST_DECLINED, "Request Declined", "declined"),
        ("sell", True, NotificationType.SELL_REQUEST_ACCEPTED, "Request Accepted", "accepted"),
        ("sell", False, NotificationType.SELL_REQUEST_DECLINED, "Request Declined", "declined"),
    ],
)
async def test_transition_notifies_customer_once(
    coordinator, store, notifications_api, customer, seller, request_type, accept, expected_type, title, verb
):
    request = await _create(coordinator, store, customer, request_type=request_type)
    store.set_session(seller, "token-seller")

    if accept:
        result = await coordinator.accept_request(request.id)
    else:
        result = await coordinator.decline_request(request.id)

    assert result.success, result.error
    expected_status = RequestStatus.ACCEPTED if accept else RequestStatus.DECLINED
    assert store.find_request(request.id).status == expected_status

    assert len(notifications_api.created) == 2
    draft = notifications_api.created[-1]
    assert draft.type == expected_type
    assert draft.recipient_id == "customer-1"
    assert draft.title == title
    assert draft.message == f"Ravi Jewellers has {verb} your request to {request_type} Gold 24K 10g."


@pytest.mark.asyncio
async def test_terminal_request_is_rejected_without_network(coordinator, store, requests_api, notifications_api, customer, seller):
    request = await _create(coordinator, store, customer)
    store.set_session(seller, "token-seller")
    assert (await coordinator.accept_request(request.id)).success
    calls_before = list(requests_api.calls)

    again = await coordinator.accept_request(request.id)
    flipped = await coordinator.decline_request(request.id)

    assert again.error == ALREADY_PROCESSED
    assert flipped.error == ALREADY_PROCESSED
    assert requests_api.calls == calls_before
    assert store.find_request(request.id).status == RequestStatus.ACCEPTED
    assert len(notifications_api.created) == 2


@pytest.mark.asyncio
async def test_backend_conflict_is_surfaced(coordinator, store, requests_api, notifications_api, customer, seller):
    request = await _create(coordinator, store, customer)
    store.set_session(seller, "token-seller")
    # another device already declined it; our cache knows nothing
    requests_api.requests[request.id] = request.with_status(RequestStatus.DECLINED, request.updated_at + 5)
    store.set_requests([])

    result = await coordinator.accept_request(request.id)

    assert result.error == ALREADY_PROCESSED
    assert store.find_request(request.id) is None
    assert len(notifications_api.created) == 1


@pytest.mark.asyncio
async def test_concurrent_accept_and_decline_from_two_devices(requests_api, notifications_api, customer, seller):
    devices = []
    for _ in range(2):
        store, bus = MarketplaceStore(), EventBus()
        router = NotificationRouter(api=notifications_api, store=store)
        router.attach(bus)
        devices.append((store, RequestCoordinator(api=requests_api, store=store, bus=bus, router=router)))

    first_store, first = devices[0]
    request = await _create(first, first_store, customer)
    for store, _ in devices:
        store.set_session(seller, "token-seller")
        store.set_requests([request])

    accepted, declined = await asyncio.gather(
        devices[0][1].accept_request(request.id),
        devices[1][1].decline_request(request.id),
    )

    outcomes = [accepted, declined]
    assert sum(1 for r in outcomes if r.success) == 1
    assert [r.error for r in outcomes if not r.success] == [ALREADY_PROCESSED]
    # one creation notification plus exactly one outcome notification
    assert len(notifications_api.created) == 2


@pytest.mark.asyncio
async def test_accept_when_backend_omits_request_patches_status(coordinator, store, requests_api, notifications_api, customer, seller):
    request = await _create(coordinator, store, customer)
    store.set_session(seller, "token-seller")
    requests_api.omit_request = True

    result = await coordinator.accept_request(request.id)

    assert result.success
    assert store.find_request(request.id).status == RequestStatus.ACCEPTED
    assert notifications_api.created[-1].type == NotificationType.BUY_REQUEST_ACCEPTED


@pytest.mark.asyncio
async def test_accept_without_request_or_cache_reloads_to_notify_customer(
    coordinator, store, requests_api, notifications_api, customer, seller
):
    request = await _create(coordinator, store, customer)
    store.set_session(seller, "token-seller")
    store.set_requests([])
    requests_api.omit_request = True

    result = await coordinator.accept_request(request.id)

    assert result.success
    assert ("list_for_seller", None) in requests_api.calls
    assert store.find_request(request.id).status == RequestStatus.ACCEPTED
    assert len(notifications_api.created) == 2
    outcome = notifications_api.created[-1]
    assert outcome.type == NotificationType.BUY_REQUEST_ACCEPTED
    assert outcome.recipient_id == "customer-1"


@pytest.mark.asyncio
async def test_failed_transition_leaves_cache_untouched(coordinator, store, requests_api, notifications_api, customer, seller):
    request = await _create(coordinator, store, customer)
    store.set_session(seller, "token-seller")
    requests_api.error = NetworkError("connection reset")

    result = await coordinator.decline_request(request.id)

    assert result.error == "Network error. Please check your internet connection."
    assert store.find_request(request.id).status == RequestStatus.PENDING
    assert len(notifications_api.created) == 1


@pytest.mark.asyncio
async def test_accept_unknown_and_blank_ids(coordinator, store, seller):
    store.set_session(seller, "token-seller")
    assert (await coordinator.accept_request("")).error == "Request ID is required."
    assert (await coordinator.accept_request("req-missing")).error == "Request not found."


@pytest.mark.asyncio
async def test_load_replaces_cache_wholesale(coordinator, store, requests_api, customer, seller):
    request = await _create(coordinator, store, customer)
    store.set_requests([replace(request, id="req-stale", status=RequestStatus.DECLINED)])

    result = await coordinator.load_seller_requests()

    assert result.success
    assert [r.id for r in store.requests] == [request.id]
    assert requests_api.calls[-1] == ("list_for_seller", None)

    await coordinator.load_customer_requests(status="accepted")
    assert store.requests == []
    assert requests_api.calls[-1] == ("list_for_customer", "accepted")


@pytest.mark.asyncio
async def test_load_failure_keeps_cache(coordinator, store, requests_api, customer):
    request = await _create(coordinator, store, customer)
    requests_api.error = BadRequestError(None, 400)

    result = await coordinator.load_seller_requests()

    assert result.error == "Failed to fetch seller requests."
    assert store.requests == [request]


@pytest.mark.asyncio
async def test_queries_filter_cached_requests(coordinator, store, customer, seller):
    first = await _create(coordinator, store, customer, request_type="buy")
    second = await _create(coordinator, store, customer, request_type="sell")
    store.set_session(seller, "token-seller")
    await coordinator.decline_request(second.id)

    assert coordinator.get_request(first.id).id == first.id
    assert {r.id for r in coordinator.requests_for_seller("seller-1")} == {first.id, second.id}
    assert {r.id for r in coordinator.requests_for_customer("customer-1")} == {first.id, second.id}
    assert [r.id for r in coordinator.pending_for_seller("seller-1")] == [first.id]
    assert coordinator.requests_for_seller("seller-2") == []
