"""Notification data access layer."""
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Query
from sqlalchemy.orm import Session as DBSession

from shared.models.entities import Notification


class NotificationRepository:
    """Repository for per-user notifications."""

    def __init__(self, db: DBSession):
        self.db = db

    def add(self, notification: Notification) -> None:
        self.db.add(notification)

    def get_for_user(self, notification_id: str, user_id: str) -> Optional[Notification]:
        return (
            self.db.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user_id)
            .first()
        )

    def for_user(self, user_id: str, read_status: Optional[bool] = None) -> Query:
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if read_status is not None:
            query = query.filter(Notification.read_status == read_status)
        return query.order_by(Notification.created_at.desc(), Notification.id)

    def unread_count(self, user_id: str) -> int:
        count = (
            self.db.query(func.count(Notification.id))
            .filter(Notification.user_id == user_id, Notification.read_status.is_(False))
            .scalar()
        )
        return count or 0

    def delete(self, notification: Notification) -> None:
        self.db.delete(notification)
