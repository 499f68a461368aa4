# yeelight_music/core/errors.py
from __future__ import annotations

from typing import Any, List, Tuple


class YeelightError(Exception):
    """
    Base class for all expected operational errors.
    """

    #: Stable machine-readable identifier
    code: str = "unknown"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Socket / connection errors
# ---------------------------------------------------------------------------

class YeelightSocketError(YeelightError):
    """
    The light could not be reached, or a socket operation failed.

    Examples:
      - connection refused / timed out on the direct port
      - relay listener port already in use
      - write or flush to a relay session failed
    """
    code = "socket_error"


class BroadcastError(YeelightSocketError):
    """
    One or more relay sessions failed during a broadcast.

    Every session was attempted before this was raised; ``delivered`` counts
    the sessions that did receive the command.
    """
    code = "broadcast_failed"

    def __init__(
        self,
        message: str,
        *,
        failures: List[Tuple[Any, Exception]],
        delivered: int,
        attempted: int,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, hint=hint, details=details)
        self.failures = list(failures)
        self.delivered = int(delivered)
        self.attempted = int(attempted)

    @property
    def first_error(self) -> Exception | None:
        return self.failures[0][1] if self.failures else None


# ---------------------------------------------------------------------------
# Protocol result errors
# ---------------------------------------------------------------------------

class YeelightResultError(YeelightError):
    """
    The light answered a direct request with an error object.

    Only detectable on the direct path; relayed commands get no answer.
    """
    code = "result_error"

    def __init__(self, method: str, error: dict, *, hint: str | None = None):
        message = str(error.get("message") or error)
        super().__init__(
            f"{method} rejected by device: {message}",
            hint=hint,
            details={"method": method, "error": dict(error)},
        )
        self.method = method
        self.error = dict(error)


class RegistrationError(YeelightError):
    """
    A light did not accept the music-mode handshake.

    Examples:
      - set_music answered with something other than "ok"
      - set_music answered with an error object
    """
    code = "registration_failed"


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigError(YeelightError):
    """
    Configuration file is missing, malformed or inconsistent.
    """
    code = "config_error"
