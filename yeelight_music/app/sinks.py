# yeelight_music/app/sinks.py
from __future__ import annotations

import logging
from collections import deque
from threading import Lock
from typing import Deque, List, Optional

from yeelight_music.interfaces.event_sink import EventSink, RelayEvent


class LoggingEventSink(EventSink):
    """
    Writes relay events to a logger and keeps the most recent ones in memory.

    Errors go out at WARNING, everything else at INFO.
    """

    ERROR_KINDS = ("accept_error", "broadcast_failed")

    def __init__(self, *, history: int = 100, logger: Optional[logging.Logger] = None):
        self._log = logger or logging.getLogger(__name__)
        self._recent: Deque[RelayEvent] = deque(maxlen=history)
        self._lock = Lock()

    def on_event(self, event: RelayEvent) -> None:
        level = logging.WARNING if event.kind in self.ERROR_KINDS else logging.INFO
        self._log.log(
            level,
            "RELAY_EVENT kind=%s name=%s port=%s payload=%s",
            event.kind,
            event.name,
            event.port,
            dict(event.payload or {}),
        )
        with self._lock:
            self._recent.append(event)

    def recent(self) -> List[RelayEvent]:
        with self._lock:
            return list(self._recent)

    def close(self) -> None:
        with self._lock:
            self._recent.clear()
