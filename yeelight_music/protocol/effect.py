from __future__ import annotations

from enum import Enum
from typing import Optional


class Effect(Enum):
    """Transition effect applied by the light to a state change."""

    SMOOTH = "smooth"
    SUDDEN = "sudden"

    @classmethod
    def coerce(cls, value: "Optional[Effect | str]") -> "Effect":
        """None -> SUDDEN; strings are matched case-insensitively on the wire token."""
        if value is None:
            return cls.SUDDEN
        if isinstance(value, cls):
            return value
        token = str(value).strip().lower()
        for effect in cls:
            if effect.value == token:
                return effect
        raise ValueError(f"Unknown effect '{value}' (expected one of: smooth, sudden)")
