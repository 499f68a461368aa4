from .light import Light, CommandTransport
from .device import Device
from .music_server import MusicServer, SERVER_PORT

__all__ = ["Light",
           "CommandTransport",
           "Device",
           "MusicServer",
           "SERVER_PORT"]
