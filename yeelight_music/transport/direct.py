# yeelight_music/transport/direct.py
from __future__ import annotations

from typing import Optional

import serial
from serial import SerialException

from .base import Transport
from .errors import TransportIOError, TransportOpenError

DEFAULT_DEVICE_PORT = 55443
LINE_END = b"\r\n"


class DirectTransport(Transport):
    """
    TCP transport to a light's control port, via pyserial's ``socket://`` handler.

    read_line() returns b"" (or a partial line) if the timeout expires first.
    """

    def __init__(self, host: str, port: int = DEFAULT_DEVICE_PORT, timeout: float = 5.0):
        self.host = host
        self.port = int(port)
        self.timeout = timeout
        self.link: Optional[serial.SerialBase] = None

    @property
    def url(self) -> str:
        return f"socket://{self.host}:{self.port}"

    def open(self) -> None:
        try:
            self.link = serial.serial_for_url(
                self.url,
                timeout=self.timeout,
                write_timeout=self.timeout,
            )
        except (SerialException, ValueError) as e:
            self.link = None
            raise TransportOpenError(f"{self.url}: {e}") from None

    def close(self) -> None:
        if self.link is not None:
            try:
                self.link.close()
            finally:
                self.link = None

    def is_open(self) -> bool:
        return self.link is not None and self.link.is_open

    def write(self, data: bytes) -> int:
        if self.link is None:
            raise TransportIOError("write while transport not open")

        try:
            return self.link.write(data)
        except SerialException as e:
            self.close()
            raise TransportIOError(f"TCP write failed: {e}") from None

    def flush(self) -> None:
        if self.link is None:
            raise TransportIOError("flush while transport not open")

        try:
            self.link.flush()
        except SerialException as e:
            self.close()
            raise TransportIOError(f"TCP flush failed: {e}") from None

    def read_line(self) -> bytes:
        if self.link is None:
            raise TransportIOError("read while transport not open")

        try:
            return self.link.read_until(LINE_END)
        except SerialException as e:
            self.close()
            raise TransportIOError(f"TCP read failed: {e}") from None
