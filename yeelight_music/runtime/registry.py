# yeelight_music/runtime/registry.py
from __future__ import annotations

import threading
from typing import Callable, List, Optional, Tuple

from .session import DeviceSession


class SessionRegistry:
    """
    Lock-guarded set of relay sessions shared by accept workers and broadcasts.

    - iteration always runs over a snapshot, so a session added mid-broadcast
      is simply not part of that broadcast
    - port allocation happens under the same lock as membership changes
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._changed = threading.Condition(self._lock)
        self._sessions: List[DeviceSession] = []
        self._ports_allocated = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def next_port(self, base: int) -> int:
        """Allocate the next relay port; never hands out the same port twice."""
        with self._lock:
            port = int(base) + self._ports_allocated
            self._ports_allocated += 1
            return port

    def add(self, session: DeviceSession) -> None:
        with self._lock:
            if session not in self._sessions:
                self._sessions.append(session)
            self._changed.notify_all()

    def remove(self, session: DeviceSession) -> bool:
        with self._lock:
            try:
                self._sessions.remove(session)
            except ValueError:
                return False
            self._changed.notify_all()
            return True

    def snapshot(self) -> Tuple[DeviceSession, ...]:
        with self._lock:
            return tuple(self._sessions)

    def for_each(self, visit: Callable[[DeviceSession], None]) -> None:
        for session in self.snapshot():
            visit(session)

    def wait_for(self, count: int, timeout: Optional[float] = None) -> bool:
        """Block until at least ``count`` sessions are registered."""
        with self._changed:
            return self._changed.wait_for(lambda: len(self._sessions) >= count, timeout=timeout)

    def close_all(self) -> None:
        # sessions stay registered; later writes fail instead of hanging
        for session in self.snapshot():
            session.close()
