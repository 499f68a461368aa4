from __future__ import annotations

from typing import List, Optional, Protocol

from yeelight_music.protocol import Command, Effect, Flow
from yeelight_music.protocol import values

DEFAULT_DURATION_MS = 100


class CommandTransport(Protocol):
    """Anything that can deliver a Command: a direct link or the relay."""
    def send_command(self, command: Command) -> List[str]: ...


class Light:
    """
    High-level light operations shared by a single device and the relay server.

    Numeric inputs are clamped into range, never rejected. Every call builds
    one Command and hands it to the bound transport; its errors propagate
    unchanged.
    """

    def __init__(
        self,
        transport: CommandTransport,
        effect: Optional[Effect] = Effect.SUDDEN,
        duration: int = DEFAULT_DURATION_MS,
    ):
        self._transport = transport
        self._effect = Effect.coerce(effect)
        self._duration = max(0, int(duration))

    @property
    def effect(self) -> Effect:
        return self._effect

    @effect.setter
    def effect(self, effect: Optional[Effect]) -> None:
        self._effect = Effect.coerce(effect)

    @property
    def duration(self) -> int:
        return self._duration

    @duration.setter
    def duration(self, duration: int) -> None:
        self._duration = max(0, int(duration))

    def send_command(self, command: Command) -> List[str]:
        return self._transport.send_command(command)

    def _send_with_effect(self, method: str, *params) -> List[str]:
        return self.send_command(Command.of(method, *params, self._effect.value, self._duration))

    def set_power(self, on: bool) -> List[str]:
        return self._send_with_effect("set_power", "on" if on else "off")

    def set_brightness(self, brightness: int) -> List[str]:
        return self._send_with_effect("set_bright", values.brightness(brightness))

    def set_rgb(self, r: int, g: int, b: int) -> List[str]:
        return self._send_with_effect("set_rgb", values.rgb_value(r, g, b))

    def set_hsv(self, hue: int, sat: int) -> List[str]:
        return self._send_with_effect("set_hsv", values.hue(hue), values.saturation(sat))

    def set_color_temperature(self, degrees: int) -> List[str]:
        return self._send_with_effect("set_ct_abx", values.color_temperature(degrees))

    def toggle(self) -> List[str]:
        return self.send_command(Command.of("toggle"))

    def start_flow(self, flow: Flow) -> List[str]:
        return self.send_command(Command.of("start_cf", *flow.params()))

    def stop_flow(self) -> List[str]:
        return self.send_command(Command.of("stop_cf"))
