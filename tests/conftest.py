"""
Pytest configuration and shared fixtures.

Provides an in-memory file source that can grow, shrink and be replaced,
and a sink that collects emitted lines, so the follow engine can be driven
without a real file or stdout.
"""
from __future__ import annotations
from typing import List
import pytest


class MemorySource:
    """
    Stand-in for FileSource.
    `files[-1]` is what the path currently names; `files[self._open]` is what
    the engine's handle points at.
    """
    def __init__(self, data: bytes = b"") -> None:
        self.files: List[bytearray] = [bytearray(data)]
        self._open = 0
        self.fail_reads = False
        self.reads = 0
        self.name = "<memory>"

    # source interface
    def size(self) -> int:
        return len(self.files[self._open])

    def read(self, offset: int, length: int) -> bytes:
        if self.fail_reads:
            raise OSError(5, "Input/output error")
        self.reads += 1
        return bytes(self.files[self._open][offset:offset + length])

    def rotated(self) -> bool:
        return self._open != len(self.files) - 1

    def reopen(self) -> None:
        self._open = len(self.files) - 1

    # test helpers
    def append(self, data: bytes) -> None:
        self.files[-1] += data

    def append_old(self, data: bytes) -> None:
        self.files[self._open] += data

    def truncate(self, size: int = 0) -> None:
        del self.files[-1][size:]

    def replace(self, data: bytes = b"") -> None:
        self.files.append(bytearray(data))


class ListSink:
    def __init__(self) -> None:
        self.lines: List[bytes] = []

    def write(self, line: bytes) -> None:
        self.lines.append(line)


@pytest.fixture
def source():
    return MemorySource()


@pytest.fixture
def sink():
    return ListSink()


@pytest.fixture
def log_file(tmp_path):
    """Return a factory writing bytes to a temporary log file."""
    def _make(data: bytes, name: str = "test.log"):
        path = tmp_path / name
        path.write_bytes(data)
        return path
    return _make
