from __future__ import annotations

from typing import Optional

from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from edulink.models.activity import ACTIVITY_TYPES, Activity

MAX_PAGE_SIZE = 200


def log_activity(
    db: Session,
    *,
    user_id: str,
    type: str,
    title: str,
    description: Optional[str] = None,
) -> Activity:
    if type not in ACTIVITY_TYPES:
        raise ValueError(f"Unknown activity type: {type}")
    ev = Activity(
        user_id=user_id,
        type=type,
        title=title,
        description=description,
    )
    db.add(ev)
    # Let caller decide commit timing; flush so `id`/`created_at` can be used.
    db.flush()
    return ev


def list_activities(
    db: Session,
    user_id: str,
    *,
    type: Optional[str] = None,
    unread_only: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> list[Activity]:
    q = db.query(Activity).filter(Activity.user_id == user_id)
    if type:
        q = q.filter(Activity.type == type)
    if unread_only:
        q = q.filter(Activity.is_read.is_(False))

    limit2 = max(1, min(int(limit or 50), MAX_PAGE_SIZE))
    return (
        q.order_by(desc(Activity.created_at), desc(Activity.id))
        .offset(max(0, int(offset or 0)))
        .limit(limit2)
        .all()
    )


def count_unread(db: Session, user_id: str) -> int:
    return int(
        db.query(func.count(Activity.id))
        .filter(Activity.user_id == user_id, Activity.is_read.is_(False))
        .scalar()
        or 0
    )


def get_activity_for_user(db: Session, activity_id: int, user_id: str) -> Activity | None:
    return db.query(Activity).filter(Activity.id == activity_id, Activity.user_id == user_id).first()


def mark_all_read(db: Session, user_id: str) -> int:
    updated = (
        db.query(Activity)
        .filter(Activity.user_id == user_id, Activity.is_read.is_(False))
        .update({Activity.is_read: True}, synchronize_session=False)
    )
    db.commit()
    return int(updated or 0)


def delete_all(db: Session, user_id: str) -> int:
    deleted = (
        db.query(Activity)
        .filter(Activity.user_id == user_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return int(deleted or 0)
