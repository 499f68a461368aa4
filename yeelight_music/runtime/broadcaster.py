# yeelight_music/runtime/broadcaster.py
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Tuple

from yeelight_music.core.errors import BroadcastError
from yeelight_music.protocol import Command
from yeelight_music.transport.errors import TransportIOError

from .registry import SessionRegistry
from .session import DeviceSession

FailureCallback = Callable[[Command, List[Tuple[DeviceSession, Exception]]], None]


class RelayBroadcaster:
    """
    Fans one command out to every registered relay session.

    Fire-and-forget: the result is always an empty list, meaning "written",
    not "applied by the light".
    """

    def __init__(
        self,
        registry: SessionRegistry,
        *,
        prune_dead_sessions: bool = True,
        on_failure: Optional[FailureCallback] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._registry = registry
        self.prune_dead_sessions = prune_dead_sessions
        self._on_failure = on_failure
        self._log = logger or logging.getLogger(__name__)

    def send_command(self, command: Command) -> list:
        data = command.encode()
        sessions = self._registry.snapshot()

        self._log.debug("RELAY_SEND method=%s sessions=%d raw=%s", command.method, len(sessions), data)

        failures: List[Tuple[DeviceSession, Exception]] = []
        delivered = 0
        for session in sessions:
            try:
                session.send(data)
            except TransportIOError as e:
                self._log.warning("RELAY_SESSION_WRITE_FAILED port=%d err=%s", session.port, e)
                failures.append((session, e))
            else:
                delivered += 1

        if not failures:
            return []

        if self.prune_dead_sessions:
            for session, _ in failures:
                if self._registry.remove(session):
                    session.close()
                    self._log.info("RELAY_SESSION_PRUNED port=%d", session.port)

        if self._on_failure is not None:
            try:
                self._on_failure(command, failures)
            except Exception:
                self._log.exception("RELAY_FAILURE_CALLBACK_ERROR")

        raise BroadcastError(
            f"{command.method} reached {delivered} of {len(sessions)} relay sessions.",
            failures=failures,
            delivered=delivered,
            attempted=len(sessions),
            hint=str(failures[0][1]),
            details={
                "method": command.method,
                "failed_ports": [s.port for s, _ in failures],
            },
        )
