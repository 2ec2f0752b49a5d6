from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from edulink.core.database import get_db
from edulink.dependencies.auth import get_current_profile
from edulink.models.activity import ACTIVITY_TYPES
from edulink.models.profile import Profile
from edulink.schemas.activity import ActivityOut, UnreadCountOut
from edulink.schemas.common import CountOut
from edulink.services.activity import (
    count_unread,
    delete_all,
    get_activity_for_user,
    list_activities,
    mark_all_read,
)


router = APIRouter(prefix="/activities", tags=["activity"], dependencies=[Depends(get_current_profile)])


@router.get("", response_model=list[ActivityOut])
def list_my_activities(
    type: str | None = Query(None),
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    if type is not None and type not in ACTIVITY_TYPES:
        raise HTTPException(status_code=400, detail=f"type must be one of {', '.join(ACTIVITY_TYPES)}")
    return list_activities(
        db,
        profile.id,
        type=type,
        unread_only=unread_only,
        limit=limit,
        offset=offset,
    )


@router.get("/unread-count", response_model=UnreadCountOut)
def unread_count(
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    return UnreadCountOut(unread=count_unread(db, profile.id))


@router.post("/read-all", response_model=CountOut)
def read_all(
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    return CountOut(count=mark_all_read(db, profile.id))


@router.post("/{activity_id}/read", response_model=ActivityOut)
def mark_read(
    activity_id: int,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    activity = get_activity_for_user(db, activity_id, profile.id)
    if not activity:
        raise HTTPException(status_code=404, detail="Activity not found")
    if not activity.is_read:
        activity.is_read = True
        db.commit()
        db.refresh(activity)
    return activity


@router.delete("/{activity_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_activity(
    activity_id: int,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    activity = get_activity_for_user(db, activity_id, profile.id)
    if not activity:
        raise HTTPException(status_code=404, detail="Activity not found")
    db.delete(activity)
    db.commit()
    return None


@router.delete("", response_model=CountOut)
def clear_activities(
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    return CountOut(count=delete_all(db, profile.id))
