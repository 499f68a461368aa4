# yeelight_music/device/music_server.py
from __future__ import annotations

import logging
import socket
import threading
from typing import Dict, List, Optional, Tuple

from yeelight_music.core.errors import (
    RegistrationError,
    YeelightResultError,
    YeelightSocketError,
)
from yeelight_music.interfaces.event_sink import EventSink, RelayEvent
from yeelight_music.protocol import Command, Effect, result_ok
from yeelight_music.runtime.broadcaster import RelayBroadcaster
from yeelight_music.runtime.listener import AcceptWorker, RelayListener
from yeelight_music.runtime.registry import SessionRegistry
from yeelight_music.runtime.session import DeviceSession
from yeelight_music.runtime.state import RelayStatus, SessionState

from .device import Device
from .light import DEFAULT_DURATION_MS, Light

SERVER_PORT = 54345


def local_host_address() -> str:
    try:
        return socket.gethostbyname(socket.gethostname())
    except OSError as e:
        raise YeelightSocketError(
            "Could not resolve the local host address.",
            hint=f"{e}; pass host= explicitly",
        ) from None


class MusicServer(Light):
    """
    Music-mode relay: lights connect back to us and every call is pushed to
    all of them without waiting for an answer.

    Usage:
        with MusicServer() as server:
            server.register(Device("192.168.1.20"))
            server.wait_for_sessions(1, timeout=5)
            server.set_rgb(0, 0, 255)
    """

    def __init__(
        self,
        port: int = SERVER_PORT,
        effect: Optional[Effect] = Effect.SUDDEN,
        duration: int = DEFAULT_DURATION_MS,
        *,
        host: Optional[str] = None,
        bind_host: str = "",
        accept_timeout_s: Optional[float] = None,
        write_timeout_s: Optional[float] = 5.0,
        prune_dead_sessions: bool = True,
        event_sink: Optional[EventSink] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._log = logger or logging.getLogger(__name__)
        self.host = host or local_host_address()
        self.base_port = int(port)
        self._event_sink = event_sink

        self._registry = SessionRegistry()
        self._broadcaster = RelayBroadcaster(
            self._registry,
            prune_dead_sessions=prune_dead_sessions,
            on_failure=self._on_broadcast_failure,
            logger=self._log,
        )
        self._listener = RelayListener(
            on_accept=self._on_accept,
            on_error=self._on_accept_error,
            bind_host=bind_host,
            accept_timeout_s=accept_timeout_s,
            write_timeout_s=write_timeout_s,
            logger=self._log,
        )

        self._lock = threading.Lock()
        self._pending: Dict[int, AcceptWorker] = {}
        self._last_error: Optional[str] = None
        self._closed = False

        super().__init__(self._broadcaster, effect, duration)

    def __repr__(self) -> str:
        return f"<MusicServer host={self.host} base_port={self.base_port} sessions={self.session_count}>"

    # --- state ---
    @property
    def session_count(self) -> int:
        return len(self._registry)

    @property
    def sessions(self) -> Tuple[DeviceSession, ...]:
        return self._registry.snapshot()

    @property
    def last_error(self) -> Optional[str]:
        with self._lock:
            return self._last_error

    def status(self) -> RelayStatus:
        with self._lock:
            pending = sorted(self._pending)
            last_error = self._last_error
        return RelayStatus(
            host=self.host,
            base_port=self.base_port,
            effect=self.effect.value,
            duration=self.duration,
            pending_ports=pending,
            sessions=[
                SessionState(
                    port=s.port,
                    peer=s.peer,
                    alive=s.alive,
                    writes=s.writes,
                    last_error=s.last_error,
                )
                for s in self._registry.snapshot()
            ],
            last_error=last_error,
        )

    # --- registration ---
    def register(self, device: Device) -> int:
        """
        Ask ``device`` to connect back to a fresh relay port.

        Returns the port once the light accepted the request; the connection
        itself completes in the background (see wait_for_sessions()).
        """
        if self._closed:
            raise YeelightSocketError("Music server is closed.", hint="Create a new MusicServer.")

        self.effect = device.effect
        self.duration = device.duration

        port = self._registry.next_port(self.base_port)
        worker = self._listener.open(port)
        with self._lock:
            self._pending[port] = worker

        self._log.info("RELAY_REGISTER device=%s port=%d host=%s", device, port, self.host)

        try:
            result = device.send_command(Command.of("set_music", 1, self.host, port))
        except YeelightResultError as e:
            self._cancel_pending(port)
            raise RegistrationError(
                f"{device} refused music mode.",
                hint=e.message,
                details={"port": port, "error": e.error},
            ) from None
        except YeelightSocketError:
            self._cancel_pending(port)
            raise

        if not result_ok(result):
            self._cancel_pending(port)
            raise RegistrationError(
                f"{device} couldn't connect to the music server.",
                hint="Check that music mode is supported and the host address is reachable.",
                details={"port": port, "result": list(result)},
            )

        return port

    def wait_for_sessions(self, count: int, timeout: Optional[float] = None) -> bool:
        return self._registry.wait_for(count, timeout=timeout)

    def send_command(self, command: Command) -> List[str]:
        with self._lock:
            closed = self._closed
        # sessions still registered after close() each report their own failure
        if closed and len(self._registry) == 0:
            raise YeelightSocketError(
                "Music server is closed.",
                hint="Create a new MusicServer.",
                details={"method": command.method},
            )
        return super().send_command(command)

    # --- lifecycle ---
    def close(self) -> None:
        with self._lock:
            self._closed = True
            workers = list(self._pending.values())
            self._pending.clear()

        for worker in workers:
            worker.stop()
        for worker in workers:
            worker.join()

        self._registry.close_all()
        self._log.info("RELAY_CLOSED sessions=%d", len(self._registry))

    def __enter__(self) -> "MusicServer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --- callbacks (accept worker threads) ---
    def _cancel_pending(self, port: int) -> None:
        with self._lock:
            worker = self._pending.pop(port, None)
        if worker is not None:
            worker.stop()
            worker.join()

        # the light may have connected before its answer arrived
        for session in self._registry.snapshot():
            if session.port == port and self._registry.remove(session):
                self._log.info("RELAY_SESSION_DISCARDED port=%d", port)
                session.close()

    def _on_accept(self, session: DeviceSession) -> None:
        # check and insert under one lock: close() and _cancel_pending() either
        # see the session in the registry or make us drop it
        with self._lock:
            worker = self._pending.pop(session.port, None)
            accepted = worker is not None and not self._closed
            if accepted:
                self._registry.add(session)

        if not accepted:
            # registration was rolled back meanwhile
            self._log.info("RELAY_SESSION_DISCARDED port=%d", session.port)
            session.close()
            return

        self._emit(RelayEvent(name="accept", kind="accept_ok", port=session.port,
                              payload={"peer": session.peer}))

    def _on_accept_error(self, port: int, error: YeelightSocketError) -> None:
        with self._lock:
            self._pending.pop(port, None)
            self._last_error = f"{error.message} ({error.hint})" if error.hint else error.message
        self._emit(RelayEvent(name="accept", kind="accept_error", port=port,
                              payload={"error": error.message, "hint": error.hint}))

    def _on_broadcast_failure(self, command: Command, failures: List[Tuple[DeviceSession, Exception]]) -> None:
        with self._lock:
            self._last_error = str(failures[0][1])
        for session, err in failures:
            self._emit(RelayEvent(name=command.method, kind="broadcast_failed", port=session.port,
                                  payload={"error": str(err)}))
            if self._broadcaster.prune_dead_sessions:
                self._emit(RelayEvent(name=command.method, kind="session_pruned", port=session.port))

    def _emit(self, event: RelayEvent) -> None:
        if self._event_sink is None:
            return
        try:
            self._event_sink.on_event(event)
        except Exception:
            self._log.exception("RELAY_EVENT_SINK_ERROR kind=%s", event.kind)
