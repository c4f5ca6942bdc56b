from __future__ import annotations
from dataclasses import dataclass, field
from typing import BinaryIO, List, Optional
import io
import os


@dataclass
class TailResult:
    lines: List[bytes] = field(default_factory=list)
    remainder: bytes = b""  # unterminated bytes after the last newline
    offset: int = 0         # end of file when the tail was taken


def _strip_cr(line: bytes) -> bytes:
    return line[:-1] if line.endswith(b"\r") else line


def read_last_lines(
    f: BinaryIO,
    num_lines: int,
    *,
    chunk_size: int = 8192,
    max_line_bytes: Optional[int] = None,
) -> TailResult:
    """
    Return the last `num_lines` complete lines of a seekable binary file.

    Reads backward from end of file one chunk at a time and stops as soon as
    num_lines + 1 newlines are seen (enough to bound num_lines whole lines) or
    the start of the file is reached. Fewer lines than requested is fine.
    With max_line_bytes set, the scan also stops once more than that many bytes
    were read without finding any newline; the remainder is then only the
    final part of that overlong line.
    """
    if num_lines < 0:
        raise ValueError(f"num_lines must be >= 0, got {num_lines}")

    size = f.seek(0, os.SEEK_END)
    if size == 0:
        return TailResult(offset=0)

    pos = size
    chunks: List[bytes] = []
    newlines = 0
    while pos > 0 and newlines <= num_lines:
        step = min(chunk_size, pos)
        pos -= step
        f.seek(pos)
        chunk = f.read(step)
        chunks.append(chunk)
        newlines += chunk.count(b"\n")
        if max_line_bytes is not None and not newlines and size - pos > max_line_bytes:
            break

    head, sep, remainder = b"".join(reversed(chunks)).rpartition(b"\n")
    if not sep:
        return TailResult(remainder=remainder, offset=size)

    lines = head.split(b"\n")
    if pos > 0:
        # first piece may start mid-line
        lines = lines[1:]
    lines = lines[-num_lines:] if num_lines else []

    return TailResult(lines=[_strip_cr(l) for l in lines], remainder=remainder, offset=size)


def read_stream_tail(stream: BinaryIO, num_lines: int) -> TailResult:
    """Tail a non-seekable stream (e.g. stdin) by buffering it first."""
    return read_last_lines(io.BytesIO(stream.read()), num_lines)
