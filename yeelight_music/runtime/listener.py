# yeelight_music/runtime/listener.py
from __future__ import annotations

import logging
import socket
import threading
import time
from typing import Callable, Optional

from yeelight_music.core.errors import YeelightSocketError
from .session import DeviceSession

AcceptCallback = Callable[[DeviceSession], None]
AcceptErrorCallback = Callable[[int, YeelightSocketError], None]

# accept() wakes up this often to check for cancellation
POLL_INTERVAL_S = 0.1


class AcceptWorker(threading.Thread):
    """Thread that waits for exactly one inbound connection on a bound listener."""

    def __init__(
        self,
        listener: socket.socket,
        port: int,
        *,
        on_accept: AcceptCallback,
        on_error: AcceptErrorCallback,
        accept_timeout_s: Optional[float] = None,
        write_timeout_s: Optional[float] = 5.0,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(daemon=True, name=f"relay-accept-{port}")
        self.port = int(port)
        self._listener = listener
        self._on_accept = on_accept
        self._on_error = on_error
        self._accept_timeout_s = accept_timeout_s
        self._write_timeout_s = write_timeout_s
        self._log = logger or logging.getLogger(__name__)
        self._stop_event = threading.Event()
        self.session: Optional[DeviceSession] = None

    @property
    def cancelled(self) -> bool:
        return self._stop_event.is_set()

    def run(self) -> None:
        deadline = (
            time.monotonic() + self._accept_timeout_s
            if self._accept_timeout_s is not None
            else None
        )
        try:
            while not self._stop_event.is_set():
                try:
                    conn, peer = self._listener.accept()
                except socket.timeout:
                    if deadline is not None and time.monotonic() >= deadline:
                        self._fail(f"no connection within {self._accept_timeout_s}s")
                        return
                    continue
                except OSError as e:
                    if self._stop_event.is_set():
                        return
                    self._log.exception("RELAY_ACCEPT_FAILED port=%d", self.port)
                    self._fail(str(e))
                    return

                if self._stop_event.is_set():
                    conn.close()
                    return

                self._log.info("RELAY_SESSION_ACCEPTED port=%d peer=%s", self.port, peer)
                self.session = DeviceSession(
                    conn,
                    port=self.port,
                    peer=peer,
                    write_timeout_s=self._write_timeout_s,
                )
                try:
                    self._on_accept(self.session)
                except Exception:
                    self._log.exception("RELAY_ACCEPT_CALLBACK_ERROR port=%d", self.port)
                return
        finally:
            # one-shot: nobody else may connect on this port
            self._listener.close()
            if self._stop_event.is_set():
                self._log.debug("RELAY_ACCEPT_CANCELLED port=%d", self.port)

    def _fail(self, reason: str) -> None:
        self._log.warning("RELAY_ACCEPT_ERROR port=%d reason=%s", self.port, reason)
        error = YeelightSocketError(
            f"Relay accept on port {self.port} failed.",
            hint=reason,
            details={"port": self.port},
        )
        try:
            self._on_error(self.port, error)
        except Exception:
            self._log.exception("RELAY_ACCEPT_ERROR_CALLBACK_ERROR port=%d", self.port)

    def stop(self) -> None:
        self._stop_event.set()


class RelayListener:
    """
    Opens one-shot listening ports for lights to connect back to.

    open() binds synchronously and returns at once; the accept itself runs
    in an AcceptWorker thread.
    """

    def __init__(
        self,
        *,
        on_accept: AcceptCallback,
        on_error: AcceptErrorCallback,
        bind_host: str = "",
        accept_timeout_s: Optional[float] = None,
        write_timeout_s: Optional[float] = 5.0,
        logger: Optional[logging.Logger] = None,
    ):
        self.bind_host = bind_host
        self.accept_timeout_s = accept_timeout_s
        self.write_timeout_s = write_timeout_s
        self._on_accept = on_accept
        self._on_error = on_error
        self._log = logger or logging.getLogger(__name__)

    def open(self, port: int) -> AcceptWorker:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.bind_host, int(port)))
            sock.listen(1)
            sock.settimeout(POLL_INTERVAL_S)
        except OSError as e:
            sock.close()
            self._log.warning("RELAY_BIND_FAILED host=%r port=%d err=%s", self.bind_host, port, e)
            raise YeelightSocketError(
                f"Could not open relay port {port}.",
                hint=str(e),
                details={"host": self.bind_host, "port": int(port)},
            ) from None

        worker = AcceptWorker(
            sock,
            port,
            on_accept=self._on_accept,
            on_error=self._on_error,
            accept_timeout_s=self.accept_timeout_s,
            write_timeout_s=self.write_timeout_s,
            logger=self._log,
        )
        worker.start()
        self._log.info("RELAY_LISTENING host=%r port=%d", self.bind_host, port)
        return worker
