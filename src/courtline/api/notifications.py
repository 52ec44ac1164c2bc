"""Notifier implementations for the real-time broadcaster.

Delivery is best-effort: a failing subscriber or broker is logged and never
turns an already committed mutation into an error.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from courtline.api.celery_app import BROADCAST_TASK, create_celery_app
from courtline.api.interfaces import MatchNotification, Notifier

logger = logging.getLogger(__name__)

Subscriber = Callable[[MatchNotification], None]


class InProcessBroadcaster(Notifier):
    """Synchronous fan-out to subscribers registered in this process."""

    def __init__(self) -> None:
        self._subscribers: List[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, subscriber: Subscriber) -> None:
        with self._lock:
            self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        with self._lock:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

    def publish(self, notification: MatchNotification) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for subscriber in subscribers:
            try:
                subscriber(notification)
            except Exception:  # pragma: no cover - depends on subscriber code
                logger.exception(
                    "subscriber %r failed for %s on match %s",
                    subscriber,
                    notification.kind,
                    notification.match_id,
                )


class CeleryBroadcaster(Notifier):
    """Enqueue notifications for an out-of-process broadcast worker."""

    def __init__(self, broker_url: Optional[str] = None, *, celery_app=None) -> None:
        self._app = celery_app if celery_app is not None else create_celery_app(broker_url)

    def publish(self, notification: MatchNotification) -> None:
        try:
            self._app.send_task(BROADCAST_TASK, args=[notification.as_dict()])
        except Exception:  # pragma: no cover - broker connectivity
            logger.exception(
                "could not enqueue %s for match %s", notification.kind, notification.match_id
            )


def build_notifier(backend: str, *, broker_url: Optional[str] = None) -> Notifier:
    if backend == "celery":
        return CeleryBroadcaster(broker_url)
    return InProcessBroadcaster()


__all__ = ["CeleryBroadcaster", "InProcessBroadcaster", "build_notifier"]
