import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..core.config import settings
from .state import BackendState

logger = logging.getLogger(__name__)

oauth2_scheme = HTTPBearer(auto_error=False)


def create_access_token(user_id: str) -> str:
    """Create a signed access token for ``user_id``."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.STUB_TOKEN_EXPIRE_MINUTES)
    payload = {"sub": user_id, "exp": expire, "type": "access"}
    return jwt.encode(payload, settings.STUB_SECRET_KEY, algorithm=settings.STUB_ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    try:
        return jwt.decode(token, settings.STUB_SECRET_KEY, algorithms=[settings.STUB_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.warning("JWT token expired")
        return None
    except jwt.InvalidTokenError:
        return None


def get_state(request: Request) -> BackendState:
    return request.app.state.backend


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(oauth2_scheme),
    state: BackendState = Depends(get_state),
) -> Dict[str, Any]:
    if not credentials or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Authentication required")
    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    user = state.users.get(payload.get("sub"))
    if not user:
        logger.warning(f"Token subject {payload.get('sub')} no longer exists")
        raise HTTPException(status_code=401, detail="Invalid token: unknown user")
    return user
