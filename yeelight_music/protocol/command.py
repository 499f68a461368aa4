from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field
from typing import ClassVar, Tuple, Union

from .errors import DecodeError

Param = Union[str, int, bool]

LINE_TERMINATOR = b"\r\n"

_MAX_ID = 0x7FFFFFFF


class _IdCounter:
    """Process-wide correlation id source (never 0)."""

    _next: ClassVar[int] = 1
    _lock: ClassVar[threading.Lock] = threading.Lock()

    @classmethod
    def next_id(cls) -> int:
        with cls._lock:
            value = cls._next
            cls._next = value + 1 if value < _MAX_ID else 1
            return value


@dataclass(frozen=True)
class Command:
    """
    One protocol request: a method name plus positional parameters.

    Parameters are positional on the wire, so their order is kept exactly as
    given. No method-name or range validation happens here.
    """

    method: str
    params: Tuple[Param, ...] = ()
    id: int = field(default_factory=_IdCounter.next_id)

    def __post_init__(self) -> None:
        params = tuple(self.params)
        for p in params:
            if not isinstance(p, (str, int, bool)):
                raise TypeError(
                    f"Unsupported parameter {p!r} for '{self.method}' "
                    "(expected str, int or bool)"
                )
        object.__setattr__(self, "params", params)

    @classmethod
    def of(cls, method: str, *params: Param) -> "Command":
        return cls(method, params)

    def as_dict(self) -> dict:
        return {"id": self.id, "method": self.method, "params": list(self.params)}

    def to_json(self) -> str:
        return json.dumps(self.as_dict(), separators=(",", ":"))

    def encode(self) -> bytes:
        """Wire form: compact JSON object terminated by CRLF."""
        return self.to_json().encode("utf-8") + LINE_TERMINATOR

    @classmethod
    def decode(cls, line: bytes | str) -> "Command":
        raw = line.encode("utf-8") if isinstance(line, str) else bytes(line)
        try:
            obj = json.loads(raw.decode("utf-8").strip())
        except (UnicodeDecodeError, ValueError):
            raise DecodeError(raw, "invalid json") from None

        if not isinstance(obj, dict) or not isinstance(obj.get("method"), str):
            raise DecodeError(raw, "missing method")

        params = obj.get("params") or []
        if not isinstance(params, list):
            raise DecodeError(raw, "params is not a list")

        try:
            return cls(obj["method"], tuple(params), int(obj.get("id", 0)))
        except (TypeError, ValueError) as e:
            raise DecodeError(raw, str(e)) from None
