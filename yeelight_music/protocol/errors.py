# yeelight_music/protocol/errors.py

class ProtocolError(Exception):
    """Base for protocol-level failures (line framing / JSON shape)."""

class DecodeError(ProtocolError):
    def __init__(self, line: bytes, reason: str):
        super().__init__(f"undecodable line ({reason}): {line[:80]!r}")
        self.line = line
        self.reason = reason
