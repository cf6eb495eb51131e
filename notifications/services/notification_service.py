"""
In-app notifications raised by workflow transitions.

NotificationService.handle_transition is an EventBus subscriber: it runs after
the originating change has committed and writes one row for the recipient.
"""
import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from notifications.repositories.notification_repository import NotificationRepository
from shared.models.domain import TransitionEvent
from shared.models.entities import Notification
from shared.models.schemas import NotificationPage, NotificationResponse
from shared.utils.constants import PRIORITY_HIGH, PRIORITY_LOW, PRIORITY_NORMAL
from shared.utils.exceptions import DatabaseException, NotFoundError
from shared.utils.pagination import paginate

logger = logging.getLogger(__name__)

# (entity, action) -> (message template, priority)
MESSAGES = {
    ("lesson_plan", "submitted"): ("A new lesson plan has been submitted for your review", PRIORITY_NORMAL),
    ("lesson_plan", "updated"): ("A lesson plan awaiting your review was updated", PRIORITY_LOW),
    ("lesson_plan", "deleted"): ("A pending lesson plan was withdrawn by the trainee", PRIORITY_LOW),
    ("lesson_plan", "reviewed"): ("Your lesson plan has been {status}", PRIORITY_HIGH),
    ("observation", "scheduled"): ("An observation of your lesson has been scheduled", PRIORITY_HIGH),
    ("observation", "advanced"): ("Your observation is now {status}", PRIORITY_NORMAL),
    ("feedback", "recorded"): ("New observation feedback is available", PRIORITY_NORMAL),
    ("student_evaluation", "recorded"): ("Your student evaluation has been submitted", PRIORITY_HIGH),
}


class NotificationService:
    """Write and read per-user notifications."""

    def __init__(self, db: DBSession):
        self.db = db
        self.repo = NotificationRepository(db)

    def handle_transition(self, event: TransitionEvent) -> Optional[Notification]:
        """Turn a transition event into a notification for its recipient."""
        if not event.recipient_id:
            logger.debug(f"No recipient for {event.entity}.{event.action} {event.entity_id}")
            return None

        template, priority = MESSAGES.get(
            (event.entity, event.action),
            (f"{event.entity.replace('_', ' ').capitalize()} {event.action}", PRIORITY_NORMAL),
        )
        notification = Notification(
            id=str(uuid.uuid4()),
            user_id=event.recipient_id,
            initiator_id=event.actor_id,
            type=f"{event.entity}_{event.action}".upper(),
            message=template.format(status=(event.to_status or "").lower()),
            priority=priority,
            read_status=False,
            created_at=datetime.utcnow(),
        )
        try:
            self.repo.add(notification)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException("insert", e)

        logger.info(f"Notification {notification.type} queued for user {event.recipient_id}")
        return notification

    def list_for_user(
        self,
        user_id: str,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        read_status: Optional[bool] = None,
    ) -> NotificationPage:
        rows, meta = paginate(self.repo.for_user(user_id, read_status), page, limit)
        return NotificationPage(notifications=[self.present(n) for n in rows], **meta)

    def unread_count(self, user_id: str) -> int:
        return self.repo.unread_count(user_id)

    def mark_read(self, notification_id: str, user_id: str, read_status: bool = True) -> Notification:
        notification = self.repo.get_for_user(notification_id, user_id)
        if not notification:
            raise NotFoundError("notification", notification_id)
        try:
            notification.read_status = read_status
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException("update", e)
        self.db.refresh(notification)
        return notification

    def delete(self, notification_id: str, user_id: str) -> None:
        notification = self.repo.get_for_user(notification_id, user_id)
        if not notification:
            raise NotFoundError("notification", notification_id)
        try:
            self.repo.delete(notification)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException("delete", e)
        logger.info(f"Notification {notification_id} deleted for user {user_id}")

    @staticmethod
    def present(notification: Notification) -> NotificationResponse:
        return NotificationResponse(
            id=notification.id,
            user_id=notification.user_id,
            initiator_id=notification.initiator_id,
            type=notification.type,
            message=notification.message,
            priority=notification.priority,
            read_status=bool(notification.read_status),
            created_at=(notification.created_at or datetime.utcnow()).isoformat(),
        )
