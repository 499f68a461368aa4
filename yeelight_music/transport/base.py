from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Transport(ABC):
    """
    Abstract line transport to a single light.

    Contract:
      - open()/close() manage the underlying connection.
      - write(data) returns the number of bytes written.
      - flush() forces pending output to be transmitted.
      - read_line() returns one line including its terminator, or b"" when
        nothing complete arrived before the timeout.
    """

    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def is_open(self) -> bool: ...

    @abstractmethod
    def write(self, data: bytes) -> int: ...

    @abstractmethod
    def flush(self) -> None: ...

    @abstractmethod
    def read_line(self) -> bytes: ...

    def __enter__(self) -> "Transport":
        self.open()
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        self.close()
