from __future__ import annotations

import pytest

import yeelight_music.transport.direct as direct_mod
from yeelight_music.transport.errors import TransportIOError, TransportOpenError


class FakeLink:
    def __init__(self, url, timeout, write_timeout):
        self.url = url
        self.timeout = timeout
        self.write_timeout = write_timeout
        self.is_open = True

        self.lines: list[bytes] = []
        self.written: list[bytes] = []
        self._raise_on_read = None
        self._raise_on_write = None
        self._raise_on_flush = None

        self.flush_called = 0
        self.close_called = 0

    def read_until(self, expected: bytes) -> bytes:
        if self._raise_on_read is not None:
            raise self._raise_on_read
        assert expected == b"\r\n"
        if not self.lines:
            return b""
        return self.lines.pop(0)

    def write(self, data: bytes) -> int:
        if self._raise_on_write is not None:
            raise self._raise_on_write
        self.written.append(data)
        return len(data)

    def flush(self) -> None:
        self.flush_called += 1
        if self._raise_on_flush is not None:
            raise self._raise_on_flush

    def close(self) -> None:
        self.close_called += 1
        self.is_open = False


def _opened(monkeypatch, link: FakeLink | None = None):
    created = {}

    def fake_for_url(url, timeout, write_timeout):
        created["link"] = link or FakeLink(url, timeout, write_timeout)
        return created["link"]

    monkeypatch.setattr(direct_mod.serial, "serial_for_url", fake_for_url)

    t = direct_mod.DirectTransport("10.0.0.5", 55443, timeout=0.5)
    t.open()
    return t, created["link"]


def test_open_uses_socket_url(monkeypatch):
    t, link = _opened(monkeypatch)

    assert link.url == "socket://10.0.0.5:55443"
    assert link.timeout == 0.5
    assert link.write_timeout == 0.5
    assert t.is_open() is True


def test_open_failure_raises_transport_open_error(monkeypatch):
    def fake_for_url(*a, **k):
        raise direct_mod.SerialException("Could not open port socket://10.0.0.5:55443")

    monkeypatch.setattr(direct_mod.serial, "serial_for_url", fake_for_url)

    t = direct_mod.DirectTransport("10.0.0.5")
    with pytest.raises(TransportOpenError):
        t.open()

    assert t.link is None
    assert t.is_open() is False


@pytest.mark.parametrize("op", ["write", "flush", "read_line"])
def test_ops_not_open_raise(op):
    t = direct_mod.DirectTransport("10.0.0.5")
    args = (b"x",) if op == "write" else ()
    with pytest.raises(TransportIOError):
        getattr(t, op)(*args)


def test_read_line_returns_one_line(monkeypatch):
    t, link = _opened(monkeypatch)
    link.lines = [b'{"id":1,"result":["ok"]}\r\n']

    assert t.read_line() == b'{"id":1,"result":["ok"]}\r\n'
    assert t.read_line() == b""


def test_write_and_flush(monkeypatch):
    t, link = _opened(monkeypatch)

    assert t.write(b"abcd") == 4
    t.flush()

    assert link.written == [b"abcd"]
    assert link.flush_called == 1


@pytest.mark.parametrize(
    "attr,op",
    [("_raise_on_write", "write"), ("_raise_on_flush", "flush"), ("_raise_on_read", "read_line")],
)
def test_serial_exception_closes_and_raises(monkeypatch, attr, op):
    t, link = _opened(monkeypatch)
    setattr(link, attr, direct_mod.SerialException("connection reset"))

    args = (b"x",) if op == "write" else ()
    with pytest.raises(TransportIOError):
        getattr(t, op)(*args)

    assert t.link is None
    assert link.close_called == 1


def test_context_manager_opens_and_closes(monkeypatch):
    link = FakeLink("socket://h:1", 1, 1)
    monkeypatch.setattr(direct_mod.serial, "serial_for_url", lambda *a, **k: link)

    with direct_mod.DirectTransport("h", 1) as t:
        assert t.is_open() is True

    assert link.close_called == 1
