# backend/roombooking/services/admin_session.py
"""
Stateless admin session token.

Format: base64url(JSON {"iat", "exp"}) + "." + base64url(HMAC-SHA256)
Nothing is stored server-side; every request re-verifies the signature and
the expiry.
"""

import base64
import hashlib
import hmac
import json
import time
from typing import Optional

COOKIE_NAME = "admin_session"


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(value: str) -> bytes:
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(value + padding)


def _sign(encoded: str, secret: str) -> str:
    digest = hmac.new(secret.encode(), encoded.encode(), hashlib.sha256).digest()
    return _b64encode(digest)


def create_session_token(secret: str, max_age: int, now: Optional[float] = None) -> str:
    issued = int(now if now is not None else time.time())
    payload = json.dumps({"iat": issued, "exp": issued + max_age}, separators=(",", ":"))
    encoded = _b64encode(payload.encode("utf-8"))
    return f"{encoded}.{_sign(encoded, secret)}"


def verify_session_token(token: str, secret: str, now: Optional[float] = None) -> bool:
    """True if the token was signed with secret and has not expired."""
    encoded, dot, signature = token.partition(".")
    if not dot or not encoded or not signature:
        return False

    if not hmac.compare_digest(_sign(encoded, secret), signature):
        return False

    try:
        payload = json.loads(_b64decode(encoded))
    except (ValueError, TypeError):
        return False

    exp = payload.get("exp") if isinstance(payload, dict) else None
    current = now if now is not None else time.time()
    return isinstance(exp, int) and exp > current


def password_matches(candidate: str, expected: str) -> bool:
    return hmac.compare_digest(candidate.encode(), expected.encode())
