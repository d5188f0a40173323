"""In-process publish/subscribe channel for session changes."""

from threading import RLock
from typing import Callable, List, Optional

import structlog

from helpdesk.domain.schemas.auth import SessionEvent, SessionRead

logger = structlog.get_logger(__name__)

INITIAL_SESSION = "INITIAL_SESSION"
SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"

SessionCallback = Callable[[str, Optional[SessionRead]], None]


class Subscription:
    """Handle returned by `SessionChannel.subscribe`."""

    def __init__(self, channel: "SessionChannel", callback: SessionCallback):
        self._channel = channel
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._channel._remove(self)


class SessionChannel:
    """Delivers each session change exactly once to every active subscriber.

    Delivery is synchronous and in registration order. A subscriber that
    raises is logged and skipped; the others still receive the event.
    """

    def __init__(self):
        self._subscriptions: List[Subscription] = []
        self._lock = RLock()

    def subscribe(self, callback: SessionCallback, current: Optional[SessionRead]) -> Subscription:
        subscription = Subscription(self, callback)
        with self._lock:
            self._subscriptions.append(subscription)
        self._deliver(subscription, SessionEvent(event=INITIAL_SESSION, session=current))
        return subscription

    def publish(self, event: str, session: Optional[SessionRead]) -> None:
        with self._lock:
            subscriptions = list(self._subscriptions)
        message = SessionEvent(event=event, session=session)
        for subscription in subscriptions:
            if subscription.active:
                self._deliver(subscription, message)

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def _deliver(self, subscription: Subscription, message: SessionEvent) -> None:
        try:
            subscription.callback(message.event, message.session)
        except Exception:
            logger.exception("Session subscriber failed", session_event=message.event)
