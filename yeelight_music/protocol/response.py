from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .errors import DecodeError


def result_ok(result: Sequence[str]) -> bool:
    """True when a light answered a request with ["ok", ...]."""
    return bool(result) and result[0] == "ok"


@dataclass(frozen=True)
class Response:
    """
    One decoded line received from a light.

    Either an answer to a request (``result`` or ``error`` set, ``id`` echoed)
    or an unsolicited notification (``method`` == "props").
    """

    id: Optional[int] = None
    result: List[str] = field(default_factory=list)
    error: Optional[Dict[str, Any]] = None
    method: Optional[str] = None
    params: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_notification(self) -> bool:
        return self.method is not None and self.id is None

    @property
    def ok(self) -> bool:
        return self.error is None and result_ok(self.result)

    @classmethod
    def parse(cls, line: bytes) -> "Response":
        raw = bytes(line)
        try:
            obj = json.loads(raw.decode("utf-8").strip())
        except (UnicodeDecodeError, ValueError):
            raise DecodeError(raw, "invalid json") from None

        if not isinstance(obj, dict):
            raise DecodeError(raw, "not an object")

        if "method" in obj and "id" not in obj:
            params = obj.get("params") or {}
            if not isinstance(params, dict):
                raise DecodeError(raw, "notification params is not an object")
            return cls(method=str(obj["method"]), params=params)

        if "result" not in obj and "error" not in obj:
            raise DecodeError(raw, "neither result nor error")

        error = obj.get("error")
        if error is not None and not isinstance(error, dict):
            error = {"code": None, "message": str(error)}

        result = obj.get("result") or []
        if not isinstance(result, list):
            result = [result]

        rid = obj.get("id")
        return cls(
            id=int(rid) if rid is not None else None,
            result=[str(r) for r in result],
            error=error,
        )
