from __future__ import annotations
from typing import BinaryIO, Optional, Tuple
import os


def open_file(path: str) -> BinaryIO:
    try:
        return open(path, "rb")
    except FileNotFoundError:
        raise FileNotFoundError(
            f"File not found: {path}\n"
            f"Please check the file path and try again"
        )
    except PermissionError:
        raise PermissionError(
            f"Permission denied: {path}\n"
            f"Please ensure you have read permission for this file"
        )
    except IsADirectoryError:
        raise IsADirectoryError(f"Is a directory: {path}")


def _identity(st: os.stat_result) -> Tuple[int, int]:
    return st.st_dev, st.st_ino


class FileSource:
    """
    An open file plus the path it was opened from.
    Size and reads go through the open handle; rotated() looks at the path,
    so a file replaced under the same name (new inode) can be picked up with
    reopen().
    """
    def __init__(self, path: str, handle: Optional[BinaryIO] = None) -> None:
        self.path = path
        self._f = handle if handle is not None else open_file(path)
        self._id = _identity(os.fstat(self._f.fileno()))

    @property
    def name(self) -> str:
        return self.path

    def size(self) -> int:
        return os.fstat(self._f.fileno()).st_size

    def read(self, offset: int, length: int) -> bytes:
        self._f.seek(offset)
        return self._f.read(length)

    def rotated(self) -> bool:
        try:
            st = os.stat(self.path)
        except FileNotFoundError:
            # mid-rotation: old name gone, new file not created yet
            return False
        return _identity(st) != self._id

    def reopen(self) -> None:
        f = open_file(self.path)
        self.close()
        self._f = f
        self._id = _identity(os.fstat(f.fileno()))

    def close(self) -> None:
        self._f.close()

    def __enter__(self) -> "FileSource":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
