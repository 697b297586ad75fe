import logging
from datetime import datetime, timezone
from typing import Union

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from beaware.db import get_db
from beaware.dependencies.access import require_admin
from beaware.models.security_checklist import SecurityChecklistItem, UserSecurityProgress
from beaware.models.user import User
from beaware.routes.auth import get_current_user
from beaware.schemas.checklist_schemas import (
    ChecklistItemCreate,
    ChecklistItemUpdate,
    ProgressUpdateRequest,
)

router = APIRouter(prefix="/security-checklist", tags=["Security Checklist"])
logger = logging.getLogger(__name__)

PRIORITY_WEIGHTS = {"high": 3, "medium": 2, "low": 1}

NULLABLE_ITEM_FIELDS = {"help_url", "tool_launch_url", "youtube_video_url", "estimated_time_minutes"}


def serialize_item(item: SecurityChecklistItem) -> dict:
    return {
        "id": item.id,
        "title": item.title,
        "description": item.description,
        "category": item.category,
        "priority": item.priority,
        "recommendation_text": item.recommendation_text,
        "help_url": item.help_url,
        "tool_launch_url": item.tool_launch_url,
        "youtube_video_url": item.youtube_video_url,
        "estimated_time_minutes": item.estimated_time_minutes,
        "is_active": item.is_active,
        "sort_order": item.sort_order,
    }


def serialize_progress(progress: UserSecurityProgress) -> dict:
    return {
        "id": progress.id,
        "user_id": progress.user_id,
        "checklist_item_id": progress.checklist_item_id,
        "is_completed": progress.is_completed,
        "completed_at": progress.completed_at,
        "notes": progress.notes,
        "updated_at": progress.updated_at,
    }


def parse_completed(raw: Union[bool, int, str]) -> bool:
    # other JSON types are rejected with 422 by ProgressUpdateRequest
    if isinstance(raw, str):
        return raw.strip().lower() == "true"
    # True == 1, so bools and ints share this check
    return raw == 1


def _active_items(db: Session) -> list[SecurityChecklistItem]:
    return list(
        db.execute(
            select(SecurityChecklistItem)
            .where(SecurityChecklistItem.is_active.is_(True))
            .order_by(SecurityChecklistItem.sort_order.asc(), SecurityChecklistItem.id.asc())
        ).scalars()
    )


def _get_item_or_404(db: Session, item_id: int) -> SecurityChecklistItem:
    item = db.get(SecurityChecklistItem, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Security checklist item not found")
    return item


# =========================================================
# ITEMS
# =========================================================

@router.get("")
def list_checklist_items(db: Session = Depends(get_db)):
    return [serialize_item(i) for i in _active_items(db)]


@router.post("", status_code=201)
def create_checklist_item(
    payload: ChecklistItemCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    item = SecurityChecklistItem(**payload.model_dump())
    db.add(item)
    db.commit()
    db.refresh(item)

    logger.info("checklist_item_created item_id=%s admin_id=%s", item.id, admin.id)
    return serialize_item(item)


@router.put("/{item_id}")
def update_checklist_item(
    item_id: int,
    payload: ChecklistItemUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    item = _get_item_or_404(db, item_id)

    # explicit nulls only clear the optional link and time fields
    updates = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or field in NULLABLE_ITEM_FIELDS
    }

    try:
        for field, value in updates.items():
            setattr(item, field, value)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("checklist_item_update_failed item_id=%s admin_id=%s", item_id, admin.id)
        raise HTTPException(status_code=500, detail="Failed to update security checklist item")

    db.refresh(item)
    return serialize_item(item)


@router.delete("/{item_id}")
def delete_checklist_item(
    item_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    item = _get_item_or_404(db, item_id)

    db.query(UserSecurityProgress).filter(
        UserSecurityProgress.checklist_item_id == item_id
    ).delete(synchronize_session=False)
    db.delete(item)
    db.commit()

    logger.info("checklist_item_deleted item_id=%s admin_id=%s", item_id, admin.id)
    return {"success": True, "message": "Security checklist item deleted successfully"}


# =========================================================
# USER PROGRESS
# =========================================================

@router.get("/progress")
def get_my_progress(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = (
        db.query(UserSecurityProgress)
        .filter(UserSecurityProgress.user_id == current_user.id)
        .order_by(UserSecurityProgress.checklist_item_id.asc())
        .all()
    )
    return [serialize_progress(p) for p in rows]


@router.get("/summary")
def get_my_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    items = _active_items(db)

    completed_ids = set(
        db.execute(
            select(UserSecurityProgress.checklist_item_id).where(
                UserSecurityProgress.user_id == current_user.id,
                UserSecurityProgress.is_completed.is_(True),
            )
        ).scalars()
    )

    total = len(items)
    completed = sum(1 for i in items if i.id in completed_ids)

    total_weight = sum(PRIORITY_WEIGHTS.get(i.priority, 1) for i in items)
    earned_weight = sum(PRIORITY_WEIGHTS.get(i.priority, 1) for i in items if i.id in completed_ids)

    by_category: dict[str, dict[str, int]] = {}
    for item in items:
        bucket = by_category.setdefault(item.category, {"completed": 0, "total": 0})
        bucket["total"] += 1
        if item.id in completed_ids:
            bucket["completed"] += 1

    return {
        "completed": completed,
        "total": total,
        "percentage": round(completed * 100 / total) if total else 0,
        "score": round(earned_weight * 100 / total_weight) if total_weight else 0,
        "categories": by_category,
        "remaining_high_priority": [
            serialize_item(i)
            for i in items
            if i.priority == "high" and i.id not in completed_ids
        ],
    }


@router.post("/{item_id}/progress")
def update_my_progress(
    item_id: int,
    payload: ProgressUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    is_completed = parse_completed(payload.is_completed)
    _get_item_or_404(db, item_id)

    progress = (
        db.query(UserSecurityProgress)
        .filter(
            UserSecurityProgress.user_id == current_user.id,
            UserSecurityProgress.checklist_item_id == item_id,
        )
        .first()
    )

    if progress is None:
        progress = UserSecurityProgress(
            user_id=current_user.id,
            checklist_item_id=item_id,
        )
        db.add(progress)

    progress.is_completed = is_completed
    progress.completed_at = datetime.now(timezone.utc) if is_completed else None
    if payload.notes:
        progress.notes = payload.notes

    db.commit()
    db.refresh(progress)

    return serialize_progress(progress)
