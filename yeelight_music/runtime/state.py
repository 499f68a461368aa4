# yeelight_music/runtime/state.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class SessionState:
    """
    Runtime state of one relay session.
    """
    port: int
    peer: Optional[Tuple[str, int]]
    alive: bool
    writes: int
    last_error: Optional[str] = None


@dataclass(frozen=True)
class RelayStatus:
    """
    A snapshot of the relay server, safe to share across threads.
    """
    host: str
    base_port: int
    effect: str
    duration: int
    pending_ports: List[int]
    sessions: List[SessionState]
    last_error: Optional[str] = None
