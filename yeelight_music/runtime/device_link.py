# yeelight_music/runtime/device_link.py
from __future__ import annotations

import logging
import threading
from typing import List, Optional

from yeelight_music.core.errors import YeelightResultError, YeelightSocketError
from yeelight_music.protocol import Command, Response
from yeelight_music.protocol.errors import DecodeError
from yeelight_music.transport.base import Transport
from yeelight_music.transport.errors import TransportError, TransportOpenError

# unsolicited "props" lines tolerated while waiting for one answer
MAX_NOTIFICATIONS = 16


class DirectLink:
    """
    Request/response exchange with one light over a direct transport.

    Responsibilities:
      - open the transport lazily and keep it for reuse
      - write one command, read lines until its answer arrives
      - translate low-level failures into YeelightSocketError /
        YeelightResultError
    """

    def __init__(self, transport: Transport, *, logger: Optional[logging.Logger] = None):
        self.transport = transport
        self._log = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()

    def send_command(self, command: Command) -> List[str]:
        with self._lock:
            response = self._exchange(command)

        if response.error is not None:
            self._log.warning("DEVICE_RESULT_ERROR method=%s error=%s", command.method, response.error)
            raise YeelightResultError(command.method, response.error)

        return list(response.result)

    def close(self) -> None:
        with self._lock:
            self.transport.close()

    def _exchange(self, command: Command) -> Response:
        try:
            if not self.transport.is_open():
                self.transport.open()
        except TransportOpenError as e:
            raise YeelightSocketError(
                "Could not connect to the light.",
                hint=str(e),
                details={"method": command.method},
            ) from None

        raw = command.encode()
        self._log.debug("DEVICE_SEND method=%s raw=%s", command.method, raw)

        try:
            self.transport.write(raw)
            self.transport.flush()

            for _ in range(MAX_NOTIFICATIONS + 1):
                line = self.transport.read_line()
                if not line.endswith(b"\n"):
                    raise YeelightSocketError(
                        "No answer from the light.",
                        hint="read timed out" if not line else f"partial line {line[:80]!r}",
                        details={"method": command.method},
                    )

                response = Response.parse(line)
                if response.is_notification:
                    self._log.debug("DEVICE_NOTIFICATION params=%s", response.params)
                    continue
                if response.id is not None and response.id != command.id:
                    self._log.debug("DEVICE_STALE_RESPONSE id=%s want=%d", response.id, command.id)
                    continue

                self._log.debug("DEVICE_RECV method=%s result=%s", command.method, response.result)
                return response

        except TransportError as e:
            self._reset()
            raise YeelightSocketError(
                "Socket error while talking to the light.",
                hint=str(e),
                details={"method": command.method},
            ) from None
        except DecodeError as e:
            self._reset()
            raise YeelightSocketError(
                "Light sent an undecodable answer.",
                hint=str(e),
                details={"method": command.method},
            ) from None
        except YeelightSocketError:
            self._reset()
            raise

        self._reset()
        raise YeelightSocketError(
            "Light kept sending notifications instead of an answer.",
            details={"method": command.method},
        )

    def _reset(self) -> None:
        try:
            self.transport.close()
        except TransportError:
            self._log.exception("DEVICE_TRANSPORT_CLOSE_FAILED")
