from __future__ import annotations

import base64
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, Request, status

from config import load_config

DEFAULT_SESSION_MINUTES = 60 * 24 * 30
BEARER_PREFIX = "Bearer "
ADMIN_HEADER = "X-Admin-Token"


@dataclass
class SessionIdentity:
    user_id: str
    is_premium: bool = False


def _get_session_config() -> dict:
    config = load_config()
    return config.get("session", {})


def get_session_secret() -> Optional[str]:
    secret = _get_session_config().get("secret")
    return secret or None


def get_session_minutes() -> int:
    minutes = _get_session_config().get("session_minutes", DEFAULT_SESSION_MINUTES)
    try:
        return int(minutes)
    except (TypeError, ValueError):
        return DEFAULT_SESSION_MINUTES


def _sign(payload: str, secret: str) -> str:
    key = hashlib.sha256(secret.encode("utf-8")).digest()
    return hmac.new(key, payload.encode("utf-8"), hashlib.sha256).hexdigest()


def create_session_token(
    user_id: str,
    secret: str,
    duration_minutes: int = DEFAULT_SESSION_MINUTES,
    is_premium: bool = False,
    premium_expires_at: Optional[int] = None,
) -> str:
    """Signed token carrying the user id and premium status.

    premium_expires_at is in milliseconds since the epoch; premium only
    counts while it lies in the future.
    """
    body = {
        "uid": user_id,
        "premium": bool(is_premium),
        "premium_expires_at": premium_expires_at,
        "exp": int(time.time()) + int(duration_minutes) * 60,
    }
    payload = base64.urlsafe_b64encode(json.dumps(body, separators=(",", ":")).encode("utf-8")).decode("ascii")
    return f"{payload}.{_sign(payload, secret)}"


def verify_session_token(token: Optional[str], secret: Optional[str]) -> Optional[SessionIdentity]:
    if not token or not secret:
        return None
    try:
        payload, signature = token.rsplit(".", 1)
    except ValueError:
        return None
    if not hmac.compare_digest(signature, _sign(payload, secret)):
        return None
    try:
        body = json.loads(base64.urlsafe_b64decode(payload.encode("ascii")))
        expires_at = int(body["exp"])
        user_id = str(body["uid"])
    except (ValueError, KeyError, TypeError):
        return None
    if expires_at < int(time.time()) or not user_id:
        return None
    premium_expires_at = body.get("premium_expires_at")
    is_premium = bool(body.get("premium")) and (
        premium_expires_at is None or int(premium_expires_at) > int(time.time() * 1000)
    )
    return SessionIdentity(user_id=user_id, is_premium=is_premium)


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header.startswith(BEARER_PREFIX):
        return header[len(BEARER_PREFIX):].strip()
    return None


def get_optional_session(request: Request) -> Optional[SessionIdentity]:
    return verify_session_token(_bearer_token(request), get_session_secret())


def require_session(request: Request) -> SessionIdentity:
    identity = get_optional_session(request)
    if identity:
        return identity
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session required")


def require_admin(request: Request) -> None:
    expected = load_config().get("admin", {}).get("token")
    provided = request.headers.get(ADMIN_HEADER, "")
    if expected and hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        return None
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin token required")
