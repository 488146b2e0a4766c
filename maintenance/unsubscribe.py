"""Signed one-click unsubscribe links."""

import hashlib
import hmac
from typing import Optional
from urllib.parse import urlencode

from .errors import ConfigError

UNSUBSCRIBE_PATH = "/api/notifications/unsubscribe"


def generate_unsubscribe_token(user_id: str, secret: Optional[str]) -> str:
    """HMAC-SHA256 of the user id, hex encoded. Requires a dedicated secret."""
    if not secret:
        raise ConfigError("UNSUBSCRIBE_SECRET is required")
    return hmac.new(secret.encode(), user_id.encode(), hashlib.sha256).hexdigest()


def verify_unsubscribe_token(user_id: str, token: str, secret: Optional[str]) -> bool:
    expected = generate_unsubscribe_token(user_id, secret)
    if len(token) != len(expected):
        return False
    return hmac.compare_digest(token, expected)


def build_unsubscribe_url(
    site_url: str, user_id: str, secret: Optional[str], resubscribe: bool = False
) -> str:
    params = {"uid": user_id, "token": generate_unsubscribe_token(user_id, secret)}
    if resubscribe:
        params["resubscribe"] = "1"
    return f"{site_url.rstrip('/')}{UNSUBSCRIBE_PATH}?{urlencode(params)}"
