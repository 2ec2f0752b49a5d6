# edulink/core/security.py
from __future__ import annotations

import hashlib
import hmac
from typing import Any

from jose import JWTError, jwt

from edulink.core.config import settings


# -------------------------
# Access tokens (issued by the hosted auth service)
# -------------------------
def _require_jwt_secret() -> None:
    if not settings.AUTH_JWT_SECRET or not settings.AUTH_JWT_SECRET.strip():
        raise RuntimeError("AUTH_JWT_SECRET must be set (auth is required).")


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Returns decoded JWT claims or raises JWTError.
    Keep this "pure": no FastAPI/HTTPException here.
    """
    _require_jwt_secret()
    audience = settings.AUTH_JWT_AUDIENCE or None
    return jwt.decode(
        token,
        settings.AUTH_JWT_SECRET,
        algorithms=[settings.AUTH_JWT_ALGORITHM],
        audience=audience,
        options={"verify_aud": audience is not None},
    )


def get_token_subject(token: str) -> tuple[str, dict[str, Any]]:
    """
    Returns (subject, claims) or raises ValueError.
    """
    try:
        claims = decode_access_token(token)
    except JWTError:
        raise ValueError("Invalid or expired token")

    sub = str(claims.get("sub") or "").strip()
    if not sub:
        raise ValueError("Token missing 'sub'")
    return sub, claims


# -------------------------
# Webhook signatures
# -------------------------
def compute_hmac_sha512(secret: str, payload: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha512).hexdigest()


def verify_hmac_sha512(secret: str, payload: bytes, signature: str | None) -> bool:
    """
    Constant-time check of a hex HMAC-SHA512 signature over the exact raw bytes.
    """
    if not secret or not signature:
        return False
    expected = compute_hmac_sha512(secret, payload)
    return hmac.compare_digest(expected.encode("ascii"), signature.strip().lower().encode("utf-8"))
