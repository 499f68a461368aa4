from __future__ import annotations

import json

import pytest

from yeelight_music.core.errors import YeelightResultError, YeelightSocketError
from yeelight_music.protocol import Command
from yeelight_music.runtime.device_link import MAX_NOTIFICATIONS, DirectLink
from yeelight_music.transport.base import Transport
from yeelight_music.transport.errors import TransportIOError, TransportOpenError


class FakeTransport(Transport):
    """Scripted line transport; ``answer`` builds a reply for each written command."""

    def __init__(self, answer=None):
        self.answer = answer
        self.lines: list[bytes] = []
        self.writes: list[bytes] = []
        self.opened = 0
        self.closed = 0
        self._open = False
        self.raise_on_open: Exception | None = None
        self.raise_on_write: Exception | None = None

    def open(self) -> None:
        if self.raise_on_open:
            raise self.raise_on_open
        self.opened += 1
        self._open = True

    def close(self) -> None:
        self.closed += 1
        self._open = False

    def is_open(self) -> bool:
        return self._open

    def write(self, data: bytes) -> int:
        if self.raise_on_write:
            raise self.raise_on_write
        self.writes.append(data)
        if self.answer is not None:
            cmd = json.loads(data)
            self.lines.extend(self.answer(cmd))
        return len(data)

    def flush(self) -> None: ...

    def read_line(self) -> bytes:
        return self.lines.pop(0) if self.lines else b""


def _line(obj) -> bytes:
    return json.dumps(obj).encode() + b"\r\n"


def test_send_returns_result_and_reuses_connection():
    t = FakeTransport(lambda c: [_line({"id": c["id"], "result": ["ok"]})])
    link = DirectLink(t)

    assert link.send_command(Command.of("toggle")) == ["ok"]
    assert link.send_command(Command.of("toggle")) == ["ok"]
    assert t.opened == 1
    assert len(t.writes) == 2


def test_notifications_are_skipped():
    t = FakeTransport(lambda c: [
        _line({"method": "props", "params": {"power": "on"}}),
        _line({"id": c["id"], "result": ["on", "50"]}),
    ])

    assert DirectLink(t).send_command(Command.of("get_prop", "power", "bright")) == ["on", "50"]


def test_stale_answer_with_other_id_is_skipped():
    t = FakeTransport(lambda c: [
        _line({"id": c["id"] - 1, "result": ["stale"]}),
        _line({"id": c["id"], "result": ["ok"]}),
    ])

    assert DirectLink(t).send_command(Command.of("toggle")) == ["ok"]


def test_error_answer_raises_result_error():
    t = FakeTransport(lambda c: [_line({"id": c["id"], "error": {"code": -1, "message": "method not supported"}})])

    with pytest.raises(YeelightResultError) as ei:
        DirectLink(t).send_command(Command.of("set_music", 1, "10.0.0.2", 54345))

    assert ei.value.method == "set_music"
    assert ei.value.error["code"] == -1
    assert t.closed == 0


def test_open_failure_raises_socket_error():
    t = FakeTransport()
    t.raise_on_open = TransportOpenError("connection refused")

    with pytest.raises(YeelightSocketError) as ei:
        DirectLink(t).send_command(Command.of("toggle"))

    assert ei.value.hint == "connection refused"


def test_write_failure_raises_socket_error_and_resets():
    t = FakeTransport()
    t.raise_on_write = TransportIOError("broken pipe")

    with pytest.raises(YeelightSocketError):
        DirectLink(t).send_command(Command.of("toggle"))

    assert t.closed == 1


def test_timeout_without_answer_raises_socket_error():
    t = FakeTransport(lambda c: [])

    with pytest.raises(YeelightSocketError) as ei:
        DirectLink(t).send_command(Command.of("toggle"))

    assert ei.value.hint == "read timed out"
    assert t.closed == 1


def test_garbage_answer_raises_socket_error():
    t = FakeTransport(lambda c: [b"garbage\r\n"])

    with pytest.raises(YeelightSocketError):
        DirectLink(t).send_command(Command.of("toggle"))


def test_endless_notifications_give_up():
    t = FakeTransport(lambda c: [_line({"method": "props", "params": {}})] * (MAX_NOTIFICATIONS + 5))

    with pytest.raises(YeelightSocketError):
        DirectLink(t).send_command(Command.of("toggle"))
