"""Change-notification hub for connected observers.

Observers subscribe a callback and receive the bare ``"change"`` message
whenever the tracked repository changed. When the last observer leaves an
optional idle hook fires after a grace delay unless someone reconnects.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

CHANGE_MESSAGE = "change"
IDLE_GRACE_SECONDS = 2.0


class ChangeNotifier:
    """Thread-safe fan-out of change signals to subscribers."""

    def __init__(
        self,
        on_idle: Callable[[], None] | None = None,
        idle_grace_seconds: float = IDLE_GRACE_SECONDS,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ) -> None:
        self._lock = threading.Lock()
        self._subscribers: list[Callable[[str], None]] = []
        self._on_idle = on_idle
        self._idle_grace_seconds = idle_grace_seconds
        self._timer_factory = timer_factory
        self._idle_timer: threading.Timer | None = None

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self, callback: Callable[[str], None]) -> Callable[[], None]:
        """Register ``callback`` and return a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)
            self._cancel_idle_timer()

        def unsubscribe() -> None:
            self._remove(callback)

        return unsubscribe

    def _remove(self, callback: Callable[[str], None]) -> None:
        with self._lock:
            if callback not in self._subscribers:
                return
            self._subscribers.remove(callback)
            if not self._subscribers:
                self._start_idle_timer()

    def _cancel_idle_timer(self) -> None:
        if self._idle_timer is not None:
            self._idle_timer.cancel()
            self._idle_timer = None

    def _start_idle_timer(self) -> None:
        if self._on_idle is None:
            return
        self._cancel_idle_timer()
        timer = self._timer_factory(self._idle_grace_seconds, self._on_idle)
        timer.daemon = True
        self._idle_timer = timer
        timer.start()

    def notify(self) -> int:
        """Send one change message to every subscriber.

        A subscriber whose callback raises is dropped. Returns the number of
        successful deliveries.
        """
        with self._lock:
            subscribers = list(self._subscribers)
        delivered = 0
        for callback in subscribers:
            try:
                callback(CHANGE_MESSAGE)
            except Exception:
                logger.warning("Dropping change subscriber %r after failure", callback, exc_info=True)
                self._remove(callback)
                continue
            delivered += 1
        logger.debug("Change notification delivered to %d subscriber(s)", delivered)
        return delivered


__all__ = ["CHANGE_MESSAGE", "ChangeNotifier", "IDLE_GRACE_SECONDS"]
