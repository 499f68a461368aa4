# yeelight_music/protocol/values.py
from __future__ import annotations

BRIGHTNESS_MIN, BRIGHTNESS_MAX = 1, 100
HUE_MIN, HUE_MAX = 0, 359
SAT_MIN, SAT_MAX = 0, 100
CT_MIN, CT_MAX = 1700, 6500
CHANNEL_MIN, CHANNEL_MAX = 0, 255


def clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, int(value)))


def rgb_value(r: int, g: int, b: int) -> int:
    """Clamp each channel to 0..255 and pack as r*65536 + g*256 + b."""
    r = clamp(r, CHANNEL_MIN, CHANNEL_MAX)
    g = clamp(g, CHANNEL_MIN, CHANNEL_MAX)
    b = clamp(b, CHANNEL_MIN, CHANNEL_MAX)
    return r * 65536 + g * 256 + b


def brightness(value: int) -> int:
    return clamp(value, BRIGHTNESS_MIN, BRIGHTNESS_MAX)


def hue(value: int) -> int:
    return clamp(value, HUE_MIN, HUE_MAX)


def saturation(value: int) -> int:
    return clamp(value, SAT_MIN, SAT_MAX)


def color_temperature(value: int) -> int:
    return clamp(value, CT_MIN, CT_MAX)
