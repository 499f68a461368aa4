# yeelight_music/transport/errors.py
from __future__ import annotations


class TransportError(Exception):
    """Byte-level failure on a light connection (direct link or relay session)."""


class TransportOpenError(TransportError):
    """The direct control port (55443) could not be opened."""


class TransportIOError(TransportError):
    """
    A write or read failed on an open connection, or the connection was
    already closed. Relay sessions raise it once and stay dead afterwards.
    """
