from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from edulink.auth.identity import Identity
from edulink.core.database import get_db
from edulink.dependencies.auth import get_current_identity, get_current_profile
from edulink.models.profile import Profile
from edulink.schemas.profile import (
    CompleteSignupIn,
    CompleteSignupOut,
    ProfileOut,
    ProfileUpdate,
    PublicProfileOut,
)
from edulink.services.profiles import InvalidRoleError, complete_signup, list_tutors, update_profile

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.post("/complete-signup", response_model=CompleteSignupOut)
def complete_signup_route(
    payload: CompleteSignupIn,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    try:
        result = complete_signup(
            db,
            identity,
            url_role=payload.role,
            stored_role=payload.stored_role,
        )
    except InvalidRoleError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return CompleteSignupOut(
        profile=ProfileOut.model_validate(result.profile),
        created=result.created,
        role_changed=result.role_changed,
        redirect_to=result.redirect_to,
    )


@router.get("/me", response_model=ProfileOut)
def get_me(profile: Profile = Depends(get_current_profile)):
    return profile


@router.patch("/me", response_model=ProfileOut)
def update_me(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    try:
        return update_profile(db, profile, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/tutors", response_model=list[PublicProfileOut])
def search_tutors(
    q: str | None = Query(None),
    subject: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    _: Profile = Depends(get_current_profile),
):
    return list_tutors(db, q=q, subject=subject, limit=limit, offset=offset)


@router.get("/{profile_id}", response_model=PublicProfileOut)
def get_public_profile(
    profile_id: str,
    db: Session = Depends(get_db),
    _: Profile = Depends(get_current_profile),
):
    profile = db.get(Profile, profile_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile
