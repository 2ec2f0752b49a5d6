from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from edulink.auth.identity import Identity
from edulink.models.profile import Profile, ProfileRole
from edulink.services.activity import log_activity

logger = logging.getLogger(__name__)

# Roles a user may pick for themselves at signup.
SIGNUP_ROLES = frozenset({ProfileRole.STUDENT.value, ProfileRole.EDUCATOR.value})

WELCOME_TITLE = "Welcome to EduLink Hub!"
WELCOME_MESSAGES = {
    ProfileRole.EDUCATOR.value: (
        "Your instructor account has been created successfully. "
        "Start creating courses and teaching students."
    ),
    ProfileRole.STUDENT.value: (
        "Your student account has been created successfully. "
        "Start exploring courses and connecting with tutors."
    ),
}

EDITABLE_FIELDS = (
    "name",
    "phone",
    "country",
    "subject",
    "qualification",
    "experience",
    "bio",
    "avatar_url",
    "email_notifications",
)


class InvalidRoleError(ValueError):
    pass


@dataclass
class SignupResult:
    profile: Profile
    created: bool
    role_changed: bool

    @property
    def redirect_to(self) -> str:
        return dashboard_path_for(self.profile.role)


def dashboard_path_for(role: str) -> str:
    if role == ProfileRole.EDUCATOR.value:
        return "/dashboard/instructor"
    return "/dashboard/student"


def resolve_signup_role(
    url_role: str | None,
    stored_role: str | None,
    metadata_role: str | None = None,
) -> str:
    """
    Pick the pending role: the URL parameter wins, then what the client kept
    in local storage, then the role saved on the auth user, else student.
    """
    for candidate in (url_role, stored_role, metadata_role):
        normalized = (candidate or "").strip().lower()
        if not normalized:
            continue
        if normalized not in SIGNUP_ROLES:
            raise InvalidRoleError(f"Unsupported role: {candidate}")
        return normalized
    return ProfileRole.STUDENT.value


def complete_signup(
    db: Session,
    identity: Identity,
    *,
    url_role: str | None = None,
    stored_role: str | None = None,
) -> SignupResult:
    role = resolve_signup_role(url_role, stored_role, identity.role_hint)

    profile = db.get(Profile, identity.user_id)
    if profile is None:
        profile = Profile(
            id=identity.user_id,
            role=role,
            name=identity.name or "User",
            email=identity.email,
            avatar_url=identity.avatar_url,
        )
        db.add(profile)
        db.flush()
        log_activity(
            db,
            user_id=profile.id,
            type="update",
            title=WELCOME_TITLE,
            description=WELCOME_MESSAGES[role],
        )
        db.commit()
        db.refresh(profile)
        logger.info("Created profile %s with role %s", profile.id, role)
        return SignupResult(profile=profile, created=True, role_changed=False)

    if profile.role == ProfileRole.ADMIN.value:
        # Admins are provisioned out of band; signup never demotes them.
        return SignupResult(profile=profile, created=False, role_changed=False)

    if profile.role != role:
        logger.info("Updating profile %s role from %s to %s", profile.id, profile.role, role)
        profile.role = role
        db.commit()
        db.refresh(profile)
        return SignupResult(profile=profile, created=False, role_changed=True)

    return SignupResult(profile=profile, created=False, role_changed=False)


def update_profile(db: Session, profile: Profile, data: dict[str, Any]) -> Profile:
    changed = False
    for key, value in data.items():
        if key not in EDITABLE_FIELDS:
            continue
        if key == "name":
            value = (value or "").strip()
            if not value:
                raise ValueError("Name is required")
        setattr(profile, key, value)
        changed = True

    if changed:
        db.commit()
        db.refresh(profile)
    return profile


def list_tutors(
    db: Session,
    *,
    q: str | None = None,
    subject: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Profile]:
    query = db.query(Profile).filter(Profile.role == ProfileRole.EDUCATOR.value)
    if q and q.strip():
        like = f"%{q.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(Profile.name).like(like),
                func.lower(func.coalesce(Profile.subject, "")).like(like),
            )
        )
    if subject and subject.strip():
        query = query.filter(func.lower(Profile.subject) == subject.strip().lower())

    limit2 = max(1, min(int(limit or 50), 200))
    return query.order_by(Profile.name.asc(), Profile.id.asc()).offset(max(0, int(offset or 0))).limit(limit2).all()
