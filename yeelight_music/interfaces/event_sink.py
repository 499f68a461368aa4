# yeelight_music/interfaces/event_sink.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol


@dataclass(frozen=True, slots=True)
class RelayEvent:
    """
    Relay lifecycle event (for tracing/monitoring).
    Keep this small + stable; put details into payload.
    """
    name: str                   # e.g. "set_rgb" or "accept"
    kind: str                   # "accept_ok" | "accept_error" | "broadcast_failed" | "session_pruned"
    port: Optional[int] = None
    payload: Optional[Mapping[str, Any]] = None


class EventSink(Protocol):
    def on_event(self, event: RelayEvent) -> None: ...
    def close(self) -> None: ...
