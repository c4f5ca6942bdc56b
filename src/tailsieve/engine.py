from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple
import logging
import time


log = logging.getLogger(__name__)

DEFAULT_MAX_LINE_BYTES = 1024 * 1024
READ_CHUNK = 64 * 1024


class FatalReadError(OSError):
    """Raised when an already-open file can no longer be read."""


# -------------------------
# Line splitting
# -------------------------
def split_lines(
    buffer: bytes,
    remainder: bytes = b"",
    *,
    max_pending: Optional[int] = None,
) -> Tuple[List[bytes], bytes]:
    """
    Split `remainder + buffer` into complete lines.
    Returns (lines, remainder_out). Lines have "\\n" (and a preceding "\\r")
    stripped; whatever follows the last "\\n" is carried over as remainder_out.
    If max_pending is set and remainder_out is longer than it, the partial
    content is emitted as a line instead of being kept.
    """
    parts = (remainder + buffer).split(b"\n")
    rest = parts.pop()
    lines = [p[:-1] if p.endswith(b"\r") else p for p in parts]

    if max_pending is not None and len(rest) > max_pending:
        # hold back a trailing "\r" so a following "\n" still pairs with it
        if len(rest) > 1 and rest.endswith(b"\r"):
            lines.append(rest[:-1])
            rest = b"\r"
        else:
            lines.append(rest)
            rest = b""
    return lines, rest


# -------------------------
# Sieve
# -------------------------
def compile_sieve(text: Optional[str]) -> Optional[bytes]:
    if not text:
        return None
    return text.encode("utf-8")


def matches(line: bytes, pattern: Optional[bytes]) -> bool:
    if not pattern:
        return True
    return pattern in line


# -------------------------
# Follow engine
# -------------------------
@dataclass
class FileCursor:
    size: int
    offset: int


class Follower:
    """
    Poll-based `tail -f` over a single source.

    `source` needs name, size(), read(offset, length), rotated() and reopen();
    `sink` needs write(line). The engine never touches stdout itself.
    Growth is read from the cursor offset, split into lines and every line
    accepted by the sieve is written to the sink. A shrinking file resumes at
    its new end; a replaced file (rotation) is reopened by path and read from
    the start.
    """
    def __init__(
        self,
        source,
        sink,
        *,
        offset: Optional[int] = None,
        remainder: bytes = b"",
        sieve: str = "",
        poll_interval: float = 0.2,
        max_line_bytes: int = DEFAULT_MAX_LINE_BYTES,
        sleep: Optional[Callable[[float], None]] = None,
        stop=None,
    ) -> None:
        self.source = source
        self.sink = sink
        self.pattern = compile_sieve(sieve)
        self.poll_interval = poll_interval
        self.max_line_bytes = max_line_bytes
        self.pending = remainder
        self._sleep = sleep or time.sleep
        self._stop = stop

        start = source.size() if offset is None else offset
        self.cursor = FileCursor(size=start, offset=start)

    def _stopped(self) -> bool:
        return self._stop is not None and self._stop.is_set()

    def _emit(self, lines: List[bytes]) -> int:
        n = 0
        for line in lines:
            if matches(line, self.pattern):
                self.sink.write(line)
                n += 1
        return n

    def _read(self, offset: int, length: int) -> bytes:
        try:
            return self.source.read(offset, length)
        except OSError as e:
            raise FatalReadError(f"Read failed on {self.source.name}: {e}") from e

    def _consume(self, size: int) -> int:
        emitted = 0
        while self.cursor.offset < size:
            data = self._read(self.cursor.offset, min(READ_CHUNK, size - self.cursor.offset))
            if not data:
                # shrank between size() and read(); next poll sees it
                break
            lines, self.pending = split_lines(data, self.pending, max_pending=self.max_line_bytes)
            self.cursor.offset += len(data)
            emitted += self._emit(lines)
        self.cursor.size = self.cursor.offset
        return emitted

    def _recover(self, size: int) -> None:
        log.warning(
            "%s: file truncated (%d -> %d bytes), reading from new end of file",
            self.source.name, self.cursor.size, size,
        )
        if self.pending:
            log.debug("dropping %d pending bytes", len(self.pending))
        self.pending = b""
        self.cursor = FileCursor(size=size, offset=size)

    def _rotate(self) -> int:
        emitted = 0
        old_size = self.source.size()
        if old_size > self.cursor.size:
            emitted = self._consume(old_size)
        try:
            self.source.reopen()
        except FileNotFoundError:
            log.debug("%s: replaced file vanished before reopen, retrying", self.source.name)
            return emitted
        if self.pending:
            log.debug("dropping %d pending bytes from replaced file", len(self.pending))
        log.warning("%s: file replaced, following new file from the start", self.source.name)
        self.pending = b""
        self.cursor = FileCursor(size=0, offset=0)
        return emitted

    def poll_once(self) -> int:
        """Run one polling step. Returns the number of lines written to the sink."""
        emitted = 0
        if self.source.rotated():
            emitted += self._rotate()

        size = self.source.size()
        if size > self.cursor.size:
            emitted += self._consume(size)
        elif size < self.cursor.size:
            self._recover(size)
        return emitted

    def run(self) -> None:
        log.debug("following %s from offset %d (poll=%ss)",
                  self.source.name, self.cursor.offset, self.poll_interval)
        while True:
            if self._stopped():
                break
            self._sleep(self.poll_interval)
            self.poll_once()

    def flush(self) -> int:
        """Emit the unterminated pending line, if any."""
        if not self.pending:
            return 0
        line, self.pending = self.pending, b""
        return self._emit([line])
