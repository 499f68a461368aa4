from __future__ import annotations

import socket
import threading

import pytest

from yeelight_music.core.errors import YeelightSocketError
from yeelight_music.runtime.listener import RelayListener
from yeelight_music.runtime.session import DeviceSession
from yeelight_music.transport.errors import TransportIOError


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def _read_line(sock: socket.socket) -> bytes:
    buf = b""
    while not buf.endswith(b"\r\n"):
        chunk = sock.recv(4096)
        if not chunk:
            break
        buf += chunk
    return buf


class Collector:
    def __init__(self):
        self.sessions: list[DeviceSession] = []
        self.errors: list[tuple[int, YeelightSocketError]] = []
        self.event = threading.Event()

    def on_accept(self, session):
        self.sessions.append(session)
        self.event.set()

    def on_error(self, port, error):
        self.errors.append((port, error))
        self.event.set()


def _listener(col: Collector, **kw) -> RelayListener:
    return RelayListener(on_accept=col.on_accept, on_error=col.on_error, bind_host="127.0.0.1", **kw)


def test_open_returns_immediately_and_accepts_one_connection():
    col = Collector()
    port = _free_port()
    worker = _listener(col).open(port)

    assert worker.is_alive()

    client = socket.create_connection(("127.0.0.1", port), timeout=2)
    try:
        assert col.event.wait(2)
        worker.join(timeout=2)
        assert not worker.is_alive()

        session = col.sessions[0]
        assert session.port == port
        assert worker.session is session

        session.send(b'{"id":1,"method":"toggle","params":[]}\r\n')
        assert _read_line(client) == b'{"id":1,"method":"toggle","params":[]}\r\n'
        assert session.writes == 1

        # one-shot: the listening socket is gone
        with pytest.raises(OSError):
            socket.create_connection(("127.0.0.1", port), timeout=1).close()
    finally:
        client.close()
        for s in col.sessions:
            s.close()


def test_stop_cancels_pending_accept():
    col = Collector()
    worker = _listener(col).open(_free_port())

    worker.stop()
    worker.join(timeout=2)

    assert not worker.is_alive()
    assert worker.cancelled is True
    assert col.sessions == []
    assert col.errors == []


def test_accept_timeout_reports_error_without_raising():
    col = Collector()
    port = _free_port()
    worker = _listener(col, accept_timeout_s=0.2).open(port)

    assert col.event.wait(3)
    worker.join(timeout=2)

    assert col.sessions == []
    assert col.errors[0][0] == port
    assert "no connection within" in col.errors[0][1].hint


def test_bind_failure_raises_socket_error():
    col = Collector()
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as busy:
        busy.bind(("127.0.0.1", 0))
        busy.listen(1)
        port = busy.getsockname()[1]

        with pytest.raises(YeelightSocketError) as ei:
            _listener(col).open(port)

    assert ei.value.details["port"] == port


def test_accept_callback_error_is_logged(caplog):
    def on_accept(session):
        session.close()
        raise RuntimeError("boom")

    port = _free_port()
    worker = RelayListener(on_accept=on_accept, on_error=lambda p, e: None, bind_host="127.0.0.1").open(port)
    client = socket.create_connection(("127.0.0.1", port), timeout=2)
    try:
        worker.join(timeout=2)
    finally:
        client.close()

    assert "RELAY_ACCEPT_CALLBACK_ERROR" in caplog.text


def test_session_write_after_close_raises():
    a, b = socket.socketpair()
    try:
        session = DeviceSession(a, port=1)
        session.close()
        session.close()

        with pytest.raises(TransportIOError):
            session.send(b"x\r\n")
        assert session.alive is False
    finally:
        b.close()


def test_session_write_to_gone_peer_marks_dead():
    a, b = socket.socketpair()
    session = DeviceSession(a, port=7, write_timeout_s=1.0)
    b.close()

    with pytest.raises(TransportIOError):
        # first writes may still land in the kernel buffer
        for _ in range(64):
            session.send(b"x" * 65536)

    assert session.alive is False
    assert session.last_error is not None
    with pytest.raises(TransportIOError):
        session.send(b"x\r\n")
    session.close()
