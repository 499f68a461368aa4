from __future__ import annotations

import colorsys
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Sequence, Tuple

from . import values

# Devices reject flow steps shorter than this.
MIN_STEP_MS = 50

MODE_COLOR = 1
MODE_TEMPERATURE = 2
MODE_SLEEP = 7


class FlowAction(IntEnum):
    """What the light does once the flow ends."""

    RECOVER = 0
    STAY = 1
    OFF = 2


def _step_ms(duration: int) -> int:
    return max(MIN_STEP_MS, int(duration))


@dataclass(frozen=True)
class RGBTransition:
    red: int
    green: int
    blue: int
    duration: int = 300
    brightness: int = 100

    def expression(self) -> Tuple[int, int, int, int]:
        return (
            _step_ms(self.duration),
            MODE_COLOR,
            values.rgb_value(self.red, self.green, self.blue),
            values.brightness(self.brightness),
        )


@dataclass(frozen=True)
class HSVTransition:
    hue: int
    saturation: int
    duration: int = 300
    brightness: int = 100

    def expression(self) -> Tuple[int, int, int, int]:
        h = values.hue(self.hue) / 360.0
        s = values.saturation(self.saturation) / 100.0
        r, g, b = (int(round(c * 255)) for c in colorsys.hsv_to_rgb(h, s, 1.0))
        return (
            _step_ms(self.duration),
            MODE_COLOR,
            values.rgb_value(r, g, b),
            values.brightness(self.brightness),
        )


@dataclass(frozen=True)
class TemperatureTransition:
    degrees: int
    duration: int = 300
    brightness: int = 100

    def expression(self) -> Tuple[int, int, int, int]:
        return (
            _step_ms(self.duration),
            MODE_TEMPERATURE,
            values.color_temperature(self.degrees),
            values.brightness(self.brightness),
        )


@dataclass(frozen=True)
class SleepTransition:
    duration: int = 300

    def expression(self) -> Tuple[int, int, int, int]:
        return (_step_ms(self.duration), MODE_SLEEP, 0, 0)


@dataclass(frozen=True)
class Flow:
    """
    Color flow description, encoded into the ``start_cf`` parameter list.

    ``count`` is the number of times the whole transition list is played;
    0 loops forever.
    """

    count: int = 0
    action: FlowAction = FlowAction.RECOVER
    transitions: Sequence = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "transitions", tuple(self.transitions))
        if self.count < 0:
            raise ValueError(f"Flow count must be >= 0, got {self.count}")
        if not self.transitions:
            raise ValueError("Flow needs at least one transition")

    def expression(self) -> str:
        parts: List[str] = []
        for t in self.transitions:
            parts.extend(str(v) for v in t.expression())
        return ",".join(parts)

    def params(self) -> list:
        # the device counts state changes, not loops
        return [self.count * len(self.transitions), int(self.action), self.expression()]
