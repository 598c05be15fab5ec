from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db
from ..models import Notification, User
from ..shared.errors import NotFound
from ..shared.responses import paginated_response, success_response
from ..shared.time_utils import utc_now

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def serialize_notification(notification: Notification) -> dict:
    return {
        "id": notification.id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "data": notification.data or {},
        "senderId": notification.sender_id,
        "isRead": notification.is_read,
        "readAt": notification.read_at,
        "createdAt": notification.created_at,
    }


@router.get("")
async def get_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    type: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get the current user's in-app notifications, newest first"""
    query = db.query(Notification).filter(Notification.recipient_id == current_user.id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    if type:
        query = query.filter(Notification.type == type)

    total = query.count()
    notifications = (
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    unread_count = (
        db.query(Notification)
        .filter(Notification.recipient_id == current_user.id, Notification.is_read.is_(False))
        .count()
    )
    return paginated_response(
        [serialize_notification(n) for n in notifications],
        page,
        limit,
        total,
        "Notifications retrieved successfully",
        unreadCount=unread_count,
    )


@router.patch("/{notification_id}/read")
async def mark_notification_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    notification = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.recipient_id == current_user.id)
        .first()
    )
    if not notification:
        raise NotFound("Notification not found")

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = utc_now()
        db.commit()
        db.refresh(notification)
    return success_response(serialize_notification(notification), "Notification marked as read")


@router.post("/read-all")
async def mark_all_notifications_read(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updated = (
        db.query(Notification)
        .filter(Notification.recipient_id == current_user.id, Notification.is_read.is_(False))
        .update({Notification.is_read: True, Notification.read_at: utc_now()}, synchronize_session=False)
    )
    db.commit()
    return success_response({"updated": updated}, "All notifications marked as read")
