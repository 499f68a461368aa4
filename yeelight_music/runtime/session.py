# yeelight_music/runtime/session.py
from __future__ import annotations

import socket
import threading
from typing import Optional, Tuple

from yeelight_music.transport.errors import TransportIOError


class DeviceSession:
    """
    One connection a light opened back to the relay.

    Write-only: commands are written to a buffered sink and flushed at once.
    A session that fails a write is dead for good.
    """

    def __init__(
        self,
        sock: socket.socket,
        *,
        port: int,
        peer: Optional[Tuple[str, int]] = None,
        write_timeout_s: Optional[float] = 5.0,
    ):
        self.port = int(port)
        self.peer = peer

        self._sock = sock
        self._sock.settimeout(write_timeout_s)
        self._writer = sock.makefile("wb")
        self._lock = threading.Lock()

        self._closed = False
        self._last_error: Optional[str] = None
        self._writes = 0

    def __repr__(self) -> str:
        return f"<DeviceSession port={self.port} peer={self.peer} alive={self.alive}>"

    @property
    def alive(self) -> bool:
        return not self._closed and self._last_error is None

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def writes(self) -> int:
        return self._writes

    def send(self, data: bytes) -> None:
        with self._lock:
            if self._closed:
                raise TransportIOError(f"write on closed session port={self.port}")
            if self._last_error is not None:
                raise TransportIOError(f"write on dead session port={self.port}: {self._last_error}")

            try:
                self._writer.write(data)
                self._writer.flush()
            except (OSError, ValueError) as e:
                self._last_error = str(e) or type(e).__name__
                raise TransportIOError(f"relay write failed port={self.port}: {self._last_error}") from None

            self._writes += 1

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        try:
            self._writer.close()
        except OSError:
            pass
        finally:
            self._sock.close()
