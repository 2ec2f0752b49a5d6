# edulink/dependencies/auth.py
from __future__ import annotations

from typing import Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from edulink.auth.identity import Identity
from edulink.core.database import get_db
from edulink.core.security import get_token_subject
from edulink.models.profile import Profile

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_identity(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity:
    """
    Validates:
      - Authorization: Bearer <token>
      - token signature + exp + audience
    Returns:
      - Identity built from the token claims (no profile lookup)
    """
    if not creds or creds.scheme.lower() != "bearer":
        raise _unauthorized("Missing Authorization header")

    try:
        sub, claims = get_token_subject(creds.credentials)
    except ValueError:
        raise _unauthorized("Invalid or expired token")

    return Identity.from_claims(sub, claims)


def get_current_profile(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> Profile:
    profile = db.get(Profile, identity.user_id)
    if not profile:
        # Signup is finished via POST /profiles/complete-signup.
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Profile setup is incomplete")
    return profile


def require_role(*roles: str) -> Callable[..., Profile]:
    allowed = frozenset(roles)

    def dependency(profile: Profile = Depends(get_current_profile)) -> Profile:
        if profile.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
        return profile

    return dependency
