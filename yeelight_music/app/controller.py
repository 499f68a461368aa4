# yeelight_music/app/controller.py
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from yeelight_music.app.config import MusicConfig
from yeelight_music.app.sinks import LoggingEventSink
from yeelight_music.core.errors import YeelightError
from yeelight_music.device import Device, MusicServer
from yeelight_music.interfaces.event_sink import EventSink


class MusicController:
    """
    App-level wiring: one MusicServer plus the lights listed in the config.
    """

    def __init__(
        self,
        config: MusicConfig,
        *,
        event_sink: Optional[EventSink] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._config = config
        self._log = logger or logging.getLogger(__name__)
        self._event_sink = event_sink if event_sink is not None else LoggingEventSink(logger=self._log)

        relay = config.relay
        self._server = MusicServer(
            relay.base_port,
            relay.effect,
            relay.duration,
            host=relay.host,
            bind_host=relay.bind_host,
            accept_timeout_s=relay.accept_timeout_s,
            write_timeout_s=relay.write_timeout_s,
            prune_dead_sessions=relay.prune_dead_sessions,
            event_sink=self._event_sink,
            logger=self._log,
        )
        self._devices: List[Device] = [
            Device(
                d.host,
                d.port,
                d.effect,
                d.duration,
                timeout=d.timeout_s,
                name=d.name,
                logger=self._log,
            )
            for d in config.devices
        ]
        self._ports: Dict[str, int] = {}
        self._failures: Dict[str, YeelightError] = {}

    @property
    def config(self) -> MusicConfig:
        return self._config

    @property
    def server(self) -> MusicServer:
        return self._server

    @property
    def event_sink(self) -> EventSink:
        return self._event_sink

    @property
    def devices(self) -> List[Device]:
        return list(self._devices)

    @property
    def ports(self) -> Dict[str, int]:
        return dict(self._ports)

    @property
    def failures(self) -> Dict[str, YeelightError]:
        return dict(self._failures)

    def start(self) -> Dict[str, int]:
        """Register every configured light; one refusal does not stop the rest."""
        for device in self._devices:
            try:
                self._ports[device.name] = self._server.register(device)
            except YeelightError as e:
                self._failures[device.name] = e
                self._log.warning("CONTROLLER_REGISTER_FAILED device=%s code=%s msg=%s",
                                  device.name, e.code, e.message)
        return dict(self._ports)

    def stop(self) -> None:
        try:
            self._server.close()
        finally:
            for device in self._devices:
                try:
                    device.close()
                except Exception:
                    self._log.exception("CONTROLLER_DEVICE_CLOSE_FAILED device=%s", device.name)
            self._event_sink.close()

    def __enter__(self) -> "MusicController":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
