from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

NETWORK_ERROR_MESSAGE = "Network error. Please check your internet connection."
SESSION_EXPIRED_MESSAGE = "Authentication failed. Please log in again."
SERVER_ERROR_MESSAGE = "Server error. Please try again later."
UNEXPECTED_ERROR_MESSAGE = "Something went wrong. Please try again."


class MarketplaceApiError(Exception):
    """Base class for failures talking to the marketplace backend."""

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message or "Marketplace API error")
        self.message = message
        self.status_code = status_code


class NetworkError(MarketplaceApiError):
    pass


class BadRequestError(MarketplaceApiError):
    pass


class SessionExpiredError(MarketplaceApiError):
    pass


class ResourceNotFoundError(MarketplaceApiError):
    pass


class ServerError(MarketplaceApiError):
    pass


def error_for_status(status_code: int, message: Optional[str] = None) -> MarketplaceApiError:
    if status_code == 401:
        return SessionExpiredError(message, status_code)
    if status_code == 404:
        return ResourceNotFoundError(message, status_code)
    if status_code >= 500:
        return ServerError(message, status_code)
    return BadRequestError(message, status_code)


def from_httpx_error(exc: httpx.HTTPError) -> MarketplaceApiError:
    if isinstance(exc, httpx.HTTPStatusError):
        message = None
        try:
            body = exc.response.json()
            if isinstance(body, dict):
                message = body.get("message") or body.get("detail") or body.get("error")
                if not isinstance(message, str):
                    message = None
        except ValueError:
            message = None
        return error_for_status(exc.response.status_code, message)
    return NetworkError(str(exc) or type(exc).__name__)


def user_message(exc: Exception, fallback: str, not_found: str = "Request not found.") -> str:
    """Translate an API failure into the text shown next to the control that triggered it."""
    if isinstance(exc, NetworkError):
        return NETWORK_ERROR_MESSAGE
    if isinstance(exc, SessionExpiredError):
        return SESSION_EXPIRED_MESSAGE
    if isinstance(exc, ResourceNotFoundError):
        return not_found
    if isinstance(exc, ServerError):
        return SERVER_ERROR_MESSAGE
    if isinstance(exc, MarketplaceApiError):
        return exc.message or fallback
    return fallback


@dataclass
class OperationResult:
    success: bool
    error: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return self.success

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


def create_error_response(error_message: str) -> OperationResult:
    """Create a standardized failure result"""
    return OperationResult(success=False, error=error_message)


def create_success_response(**data: Any) -> OperationResult:
    """Create a standardized success result"""
    return OperationResult(success=True, data=data)
