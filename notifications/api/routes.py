"""Notification API endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session as DBSession

from database import get_db
from notifications.services.notification_service import NotificationService
from shared.api.errors import internal_error
from shared.models.schemas import (
    MessageResponse,
    NotificationPage,
    NotificationResponse,
    NotificationUpdate,
)
from shared.utils.exceptions import TeachingPracticeException

router = APIRouter(prefix="/api/users/{user_id}/notifications", tags=["notifications"])


@router.get("", response_model=NotificationPage)
def list_notifications(
    user_id: str,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    read_status: Optional[bool] = None,
    db: DBSession = Depends(get_db),
):
    try:
        return NotificationService(db).list_for_user(user_id, page, limit, read_status)
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("listing notifications", e)


@router.get("/unread-count")
def unread_count(user_id: str, db: DBSession = Depends(get_db)):
    try:
        return {"unread_count": NotificationService(db).unread_count(user_id)}
    except Exception as e:
        raise internal_error("counting notifications", e)


@router.put("/{notification_id}", response_model=NotificationResponse)
def update_notification(
    user_id: str,
    notification_id: str,
    request: NotificationUpdate,
    db: DBSession = Depends(get_db),
):
    """Mark a notification read or unread."""
    try:
        service = NotificationService(db)
        return service.present(service.mark_read(notification_id, user_id, request.read_status))
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("updating notification", e)


@router.delete("/{notification_id}", response_model=MessageResponse)
def delete_notification(user_id: str, notification_id: str, db: DBSession = Depends(get_db)):
    try:
        NotificationService(db).delete(notification_id, user_id)
        return MessageResponse(message="Notification deleted successfully")
    except TeachingPracticeException as e:
        raise e.to_http_exception()
    except Exception as e:
        raise internal_error("deleting notification", e)
