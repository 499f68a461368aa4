# protocol/__init__.py

from .command import Command, LINE_TERMINATOR
from .effect import Effect
from .flow import (
    Flow,
    FlowAction,
    RGBTransition,
    HSVTransition,
    TemperatureTransition,
    SleepTransition,
)
from .response import Response, result_ok
from .errors import ProtocolError, DecodeError

__all__ = [
    "Command", "LINE_TERMINATOR",
    "Effect",
    "Flow", "FlowAction",
    "RGBTransition", "HSVTransition", "TemperatureTransition", "SleepTransition",
    "Response", "result_ok",
    "ProtocolError", "DecodeError",
]
