import logging
from typing import Optional

from fastapi import Header, WebSocket
from firebase_admin import auth as firebase_auth

from .config import settings
from .firebase import get_firebase_app

logger = logging.getLogger(__name__)


def verify_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the Firebase uid for an `Authorization: Bearer <id token>` value, or None."""
    if not authorization:
        return None

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None

    try:
        decoded = firebase_auth.verify_id_token(token, app=get_firebase_app())
    except (ValueError, firebase_auth.InvalidIdTokenError, firebase_auth.ExpiredIdTokenError,
            firebase_auth.RevokedIdTokenError, firebase_auth.CertificateFetchError) as e:
        logger.warning(f"Rejected ID token: {e}")
        return None
    return decoded.get("uid")


async def get_current_user_id(
    authorization: Optional[str] = Header(default=None),
    x_user_id: Optional[str] = Header(default=None)
) -> Optional[str]:
    """Resolve the caller's identity; None means unauthenticated.

    The header backend trusts `X-User-Id` and is meant for local development
    against the in-memory store only.
    """
    if settings.AUTH_BACKEND == "header":
        return x_user_id or None
    return verify_bearer_token(authorization)


async def get_websocket_user_id(websocket: WebSocket) -> Optional[str]:
    """Same as get_current_user_id, also accepting `?token=` since browsers can't set WS headers"""
    if settings.AUTH_BACKEND == "header":
        return websocket.headers.get("x-user-id") or websocket.query_params.get("user_id") or None

    authorization = websocket.headers.get("authorization")
    token = websocket.query_params.get("token")
    if not authorization and token:
        authorization = f"Bearer {token}"
    return verify_bearer_token(authorization)
