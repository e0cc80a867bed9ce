"""Transient success/error messages shown over the editor."""
import logging
import time
from collections import deque

from plano import config

logger = logging.getLogger(__name__)

HISTORY_SIZE = 50


class Notification:
    def __init__(self, message, success, expires_at):
        self.message = message
        self.success = success
        self.expires_at = expires_at

    @property
    def color(self):
        return "#2ecc71" if self.success else "#e74c3c"

    def __repr__(self):
        status = "ok" if self.success else "error"
        return f"<Notification {status} {self.message!r}>"


class Notifier:
    """Keeps the currently visible notifications and tells views about new ones.

    Each notification lives for ``delay_ms`` independently of the others;
    several can be visible at once.
    """

    def __init__(self, delay_ms=config.NOTIFY_DELAY_MS, clock=time.monotonic):
        self.delay_ms = delay_ms
        self._clock = clock
        self._listeners = []
        self.active = []
        self.history = deque(maxlen=HISTORY_SIZE)

    def subscribe(self, callback):
        self._listeners.append(callback)

    def notify(self, message, success=True):
        note = Notification(message, success, self._clock() + self.delay_ms / 1000.0)
        if success:
            logger.info(message)
        else:
            logger.warning(message)

        self.expire()
        self.active.append(note)
        self.history.append(note)
        for callback in self._listeners:
            callback(note)
        return note

    def dismiss(self, note):
        if note in self.active:
            self.active.remove(note)

    def expire(self):
        now = self._clock()
        self.active = [n for n in self.active if n.expires_at > now]

    @property
    def last(self):
        return self.history[-1] if self.history else None
