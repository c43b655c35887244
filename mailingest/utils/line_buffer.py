"""Rewindable line-addressable view over the bytes of one file."""

import re
from pathlib import Path
from typing import Optional

_LINE_BREAK = re.compile(rb"\r\n|\r|\n")


class EndOfBufferError(IndexError):
    """Raised when reading past the last line of a buffer."""

    pass


class InputTooLargeError(ValueError):
    """Raised when a file exceeds the configured maximum import size."""

    pass


class LineBuffer:
    """
    Random-access iteration over the physical lines of a byte blob.

    Lines are split on ``\\r\\n``, ``\\n`` or a bare ``\\r``. A terminator at
    the very end of the data does not produce an extra empty line.

    The buffer keeps a cursor: ``read_line`` returns the line under the
    cursor and advances it, ``rewind``/``move_to`` reposition it.
    """

    def __init__(self, data: bytes, filename: str = ""):
        self._filename = filename
        self._lines = _LINE_BREAK.split(data) if data else []
        if self._lines and self._lines[-1] == b"":
            self._lines.pop()
        self._position = 0

    @classmethod
    def from_file(cls, path: Path, max_size_bytes: Optional[int] = None) -> "LineBuffer":
        """
        Read a whole file into a buffer.

        Args:
            path: File to read
            max_size_bytes: Upper bound on the file size (None for no limit)

        Returns:
            LineBuffer positioned at the first line

        Raises:
            FileNotFoundError: If path does not exist
            InputTooLargeError: If the file is larger than max_size_bytes
        """
        if not path.exists():
            raise FileNotFoundError(f"Email file not found: {path}")

        size = path.stat().st_size
        if max_size_bytes is not None and size > max_size_bytes:
            raise InputTooLargeError(
                f"{path} has {size} bytes, maximum acceptable size is {max_size_bytes} bytes"
            )

        return cls(path.read_bytes(), filename=str(path))

    def filename(self) -> str:
        return self._filename

    def number_of_lines(self) -> int:
        return len(self._lines)

    def current_line_index(self) -> int:
        """Index of the line the next read returns (equals lines consumed so far)."""
        return self._position

    def at_end(self) -> bool:
        return self._position >= len(self._lines)

    def read_raw_line(self) -> bytes:
        """
        Return the current line as bytes and advance.

        Raises:
            EndOfBufferError: If the buffer is exhausted
        """
        if self.at_end():
            raise EndOfBufferError(f"{self._filename}: end of buffer reached")
        line = self._lines[self._position]
        self._position += 1
        return line

    def read_line(self) -> str:
        """
        Return the current line as text and advance.

        UTF-8 is tried first; 8-bit lines that are not valid UTF-8 are read
        as ISO-8859-1 so that no byte is lost.

        Raises:
            EndOfBufferError: If the buffer is exhausted
        """
        raw = self.read_raw_line()
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            return raw.decode("iso-8859-1")

    def peek_line(self) -> Optional[str]:
        """Return the current line without advancing, or None at the end."""
        if self.at_end():
            return None
        line = self.read_line()
        self._position -= 1
        return line

    def rewind(self, count: int = 1) -> bool:
        """Move the cursor back by count lines; False if that leaves the buffer."""
        return self.move_to(self._position - count)

    def move_to(self, index: int) -> bool:
        """
        Position the cursor on line index.

        The position one past the last line (the end) is a valid target.
        """
        if 0 <= index <= len(self._lines):
            self._position = index
            return True
        return False
