# yeelight_music/device/device.py
from __future__ import annotations

import logging
from typing import Dict, Optional

from yeelight_music.protocol import Command, Effect
from yeelight_music.runtime.device_link import DirectLink
from yeelight_music.transport.direct import DEFAULT_DEVICE_PORT, DirectTransport

from .light import DEFAULT_DURATION_MS, Light


class Device(Light):
    """
    A single light reached over its own control port.

    Usage:
        with Device("192.168.1.20") as bulb:
            bulb.set_rgb(255, 0, 0)
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_DEVICE_PORT,
        effect: Optional[Effect] = Effect.SUDDEN,
        duration: int = DEFAULT_DURATION_MS,
        *,
        timeout: float = 5.0,
        name: Optional[str] = None,
        link: Optional[DirectLink] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.host = host
        self.port = int(port)
        self.name = name or host
        self._link = link or DirectLink(DirectTransport(host, port, timeout=timeout), logger=logger)
        super().__init__(self._link, effect, duration)

    def __repr__(self) -> str:
        return f"<Device name={self.name} addr={self.host}:{self.port}>"

    def get_properties(self, *names: str) -> Dict[str, str]:
        """Read named properties; missing ones come back as ""."""
        result = self.send_command(Command.of("get_prop", *names))
        return {n: (result[i] if i < len(result) else "") for i, n in enumerate(names)}

    def stop_music(self):
        return self.send_command(Command.of("set_music", 0))

    def close(self) -> None:
        self._link.close()

    def __enter__(self) -> "Device":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
