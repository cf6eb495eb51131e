"""
In-process transition signal.

Services publish a TransitionEvent after a workflow change has been
committed. Subscribers run synchronously in publish order; a subscriber that
raises is logged and skipped so the committed change is never affected.
"""
import logging
from typing import Callable, List

from shared.models.domain import TransitionEvent

logger = logging.getLogger(__name__)

Handler = Callable[[TransitionEvent], None]


class EventBus:
    """Synchronous publish/subscribe for workflow transitions."""

    def __init__(self):
        self._handlers: List[Handler] = []

    def subscribe(self, handler: Handler) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def unsubscribe(self, handler: Handler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    @property
    def handlers(self) -> List[Handler]:
        return list(self._handlers)

    def publish(self, event: TransitionEvent) -> int:
        """
        Deliver ``event`` to every subscriber.

        Returns:
            Number of subscribers that handled the event without raising
        """
        delivered = 0
        for handler in list(self._handlers):
            try:
                handler(event)
                delivered += 1
            except Exception as e:
                logger.error(
                    f"Subscriber {getattr(handler, '__qualname__', handler)} failed for "
                    f"{event.entity} {event.entity_id} ({event.action}): {e}",
                    exc_info=True,
                )
        logger.debug(
            f"Published {event.entity}.{event.action} for {event.entity_id} "
            f"to {delivered}/{len(self._handlers)} subscribers"
        )
        return delivered
