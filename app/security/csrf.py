# app/security/csrf.py
import base64
import binascii
import hmac
import logging
import secrets
from typing import Optional

from fastapi import Form, HTTPException, Request, status

logger = logging.getLogger(__name__)

TOKEN_LENGTH = 32
FIELD_NAME = "csrf_token"
SAFE_METHODS = {"GET", "HEAD", "OPTIONS", "TRACE"}


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii")


def _b64decode(value: str) -> Optional[bytes]:
    try:
        return base64.urlsafe_b64decode(value.encode("ascii"))
    except (binascii.Error, ValueError, UnicodeEncodeError):
        return None


def new_base_token() -> str:
    """The per-client secret kept in the CSRF cookie."""
    return _b64encode(secrets.token_bytes(TOKEN_LENGTH))


def decode_base_token(value: Optional[str]) -> Optional[bytes]:
    if not value:
        return None
    raw = _b64decode(value)
    if raw is None or len(raw) != TOKEN_LENGTH:
        return None
    return raw


def mask_token(base: bytes) -> str:
    """One-time-pad the base token so the value embedded in HTML differs on every render."""
    pad = secrets.token_bytes(TOKEN_LENGTH)
    masked = bytes(a ^ b for a, b in zip(pad, base))
    return _b64encode(pad + masked)


def unmask_token(value: str) -> Optional[bytes]:
    raw = _b64decode(value) if value else None
    if raw is None or len(raw) != 2 * TOKEN_LENGTH:
        return None
    pad, masked = raw[:TOKEN_LENGTH], raw[TOKEN_LENGTH:]
    return bytes(a ^ b for a, b in zip(pad, masked))


def tokens_match(cookie_value: Optional[str], submitted: Optional[str]) -> bool:
    base = decode_base_token(cookie_value)
    sent = unmask_token(submitted or "")
    if base is None or sent is None:
        return False
    return hmac.compare_digest(base, sent)


def verify_csrf(request: Request, csrf_token: str = Form("")) -> None:
    """Route dependency for state-changing requests; rejects with 400 before the handler runs."""
    if request.method in SAFE_METHODS:
        return
    ctx = getattr(request.state, "ctx", None)
    cookie_value = ctx.csrf_cookie if ctx is not None else None
    if not tokens_match(cookie_value, csrf_token):
        logger.warning("csrf.py: Rejected %s %s: CSRF token missing or invalid", request.method, request.url.path)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Bad Request")
