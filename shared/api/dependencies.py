"""FastAPI dependencies shared by the workflow routers."""
from fastapi import Depends
from sqlalchemy.orm import Session as DBSession

from database import get_db
from notifications.services.notification_service import NotificationService
from shared.services.event_bus import EventBus


def get_event_bus(db: DBSession = Depends(get_db)) -> EventBus:
    """Request-scoped bus with the notification writer subscribed."""
    bus = EventBus()
    bus.subscribe(NotificationService(db).handle_transition)
    return bus
