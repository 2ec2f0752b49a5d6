# edulink/auth/identity.py
"""
Canonical authenticated identity model.

Access tokens are issued by the hosted auth service. This module turns their
claims into a small value object so downstream code can reason about "who is
this user?" without inspecting raw JWTs.

The Identity object is INTERNAL ONLY and should not be returned directly
to clients.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Identity:
    """
    Attributes:
        user_id: The token ``sub``; also the profile id.
        email: User's email address if present on the token.
        name: Display name from ``user_metadata`` (``name`` or ``full_name``).
        role_hint: Role stored in ``user_metadata`` at signup, if any. The
                   profile row stays authoritative once it exists.
        avatar_url: Avatar from ``user_metadata`` (OAuth providers set this).
        raw_claims: Token claims for debugging/audit only.
    """

    user_id: str
    email: str | None = None
    name: str | None = None
    role_hint: str | None = None
    avatar_url: str | None = None
    raw_claims: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_claims(cls, sub: str, claims: dict[str, Any]) -> Identity:
        metadata = claims.get("user_metadata")
        if not isinstance(metadata, dict):
            metadata = {}

        name = metadata.get("name") or metadata.get("full_name")
        role = metadata.get("role")
        email = claims.get("email")
        return cls(
            user_id=sub,
            email=str(email).strip().lower() if email else None,
            name=str(name).strip() if isinstance(name, str) and name.strip() else None,
            role_hint=str(role).strip().lower() if isinstance(role, str) and role.strip() else None,
            avatar_url=metadata.get("avatar_url") or None,
            raw_claims=dict(claims),
        )
