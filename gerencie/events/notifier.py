"""
Change Notifier

The data-access adapter calls `emit` after every mutation. Views subscribe
and re-fetch when notified. Every event is also written to the structured
log, which is the only trace the app keeps of what changed.

A failing listener is logged and skipped; it never breaks the mutation
that triggered the notification.
"""

from typing import Callable, Optional

import structlog

from gerencie.models.events import Backend, ChangeAction, ChangeEvent


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


Listener = Callable[[ChangeEvent], None]


class ChangeNotifier:
    """
    Broadcasts `db-change` events to subscribed listeners.

    Listeners are called synchronously, in subscription order.
    """

    def __init__(self):
        self._listeners: list[Listener] = []
        self._logger = structlog.get_logger(__name__)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener.

        Returns a callable that removes it again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def emit(self, event: ChangeEvent) -> None:
        """Log the event and notify every listener."""
        self._logger.info("db_change", **event.to_log_dict())

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                self._logger.error(
                    "change_listener_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )

    def notify(
        self,
        action: ChangeAction,
        entity: Optional[str] = None,
        entity_id: Optional[str] = None,
        backend: Optional[Backend] = None,
    ) -> ChangeEvent:
        """Build a ChangeEvent and emit it."""
        event = ChangeEvent(
            action=action,
            entity=entity,
            entity_id=entity_id,
            backend=backend,
        )
        self.emit(event)
        return event
