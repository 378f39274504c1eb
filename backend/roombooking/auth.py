# backend/roombooking/auth.py
"""
Admin authentication dependencies.

Admin requests carry the signed session token either in the admin_session
cookie or as "Authorization: Bearer <token>".
"""

import hmac
import logging
from typing import Optional

from fastapi import Cookie, Header, HTTPException, status

from .config import settings
from .services.admin_session import COOKIE_NAME, verify_session_token

logger = logging.getLogger(__name__)


def _bearer(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):].strip() or None
    return None


def require_admin(
    admin_session: Optional[str] = Cookie(None, alias=COOKIE_NAME),
    authorization: Optional[str] = Header(None),
) -> None:
    secret = settings.admin_password
    if not secret:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin password is not configured",
        )

    token = admin_session or _bearer(authorization)
    if not token or not verify_session_token(token, secret):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def require_admin_or_cron(
    admin_session: Optional[str] = Cookie(None, alias=COOKIE_NAME),
    authorization: Optional[str] = Header(None),
) -> None:
    """Scheduled jobs authenticate with CRON_SECRET instead of a session."""
    cron_secret = settings.cron_secret
    bearer = _bearer(authorization)
    if cron_secret and bearer and hmac.compare_digest(bearer, cron_secret):
        return
    require_admin(admin_session, authorization)
