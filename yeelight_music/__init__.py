"""Yeelight control library with a music-mode relay server."""

from yeelight_music.core.errors import (
    YeelightError,
    YeelightSocketError,
    BroadcastError,
    YeelightResultError,
    RegistrationError,
    ConfigError,
)
from yeelight_music.device import Device, Light, MusicServer, SERVER_PORT
from yeelight_music.protocol import (
    Command,
    Effect,
    Flow,
    FlowAction,
    RGBTransition,
    HSVTransition,
    TemperatureTransition,
    SleepTransition,
)

__version__ = "0.1.0"
__all__ = [
    "YeelightError",
    "YeelightSocketError",
    "BroadcastError",
    "YeelightResultError",
    "RegistrationError",
    "ConfigError",
    "Device",
    "Light",
    "MusicServer",
    "SERVER_PORT",
    "Command",
    "Effect",
    "Flow",
    "FlowAction",
    "RGBTransition",
    "HSVTransition",
    "TemperatureTransition",
    "SleepTransition",
]
