# Notifications Router
# Handles user notifications

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from database.config import get_db
from database.models import User
from schemas.collaboration import NotificationResponse
from auth.dependencies import get_current_user
from services.errors import NotFoundError
from services.notification_service import get_notification_service

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=List[NotificationResponse])
async def get_notifications(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    unread_only: bool = Query(False, description="Only return unread notifications"),
    limit: int = Query(20, ge=1, le=100),
):
    """
    Get user's notifications.
    """
    service = get_notification_service(db)
    return [
        NotificationResponse.model_validate(n)
        for n in service.list_for_user(current_user.id, unread_only=unread_only, limit=limit)
    ]


@router.get("/unread-count")
async def get_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"unread_count": get_notification_service(db).get_unread_count(current_user.id)}


@router.post("/{notification_id}/read")
async def mark_as_read(
    notification_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not get_notification_service(db).mark_read(notification_id, current_user.id):
        raise NotFoundError("Notification not found", {"notification_id": notification_id})

    db.commit()
    return {"status": "success"}
