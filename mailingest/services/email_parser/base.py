"""Abstract interface for email import implementations."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, Optional

import structlog

from mailingest.config.import_config import AppConfig
from mailingest.models.email_message import EmailMessage
from mailingest.utils.line_buffer import InputTooLargeError, LineBuffer

logger = structlog.get_logger()


class EmailParseError(Exception):
    """Base exception for email parsing errors."""

    pass


class FatalParseError(EmailParseError):
    """
    Raised when a message cannot be parsed any further.

    Never escapes the importers: the message's diagnostic records it.
    """

    def __init__(self, message: str, line: int = -1):
        super().__init__(message)
        self.line = line


class InvalidFormatError(EmailParseError):
    """Raised when an archive format is not recognized or supported."""

    pass


class EmailParser(ABC):
    """
    Abstract interface for email import implementations.

    Supports the storage formats single file, mbox and Apple Mail .emlx
    while providing a consistent API for the rest of the system.
    """

    format_name = "unknown"

    def __init__(self, config: Optional[AppConfig] = None):
        """
        Initialize parser.

        Args:
            config: Application configuration (defaults apply when omitted)
        """
        self.config = config or AppConfig()

    @abstractmethod
    def parse(self, email_path: Path) -> Iterator[EmailMessage]:
        """
        Parse the messages stored at the given path.

        Args:
            email_path: Path to email file

        Yields:
            EmailMessage per stored message, in file order

        Notes:
            - Fatal problems are recorded on the message (has_error()), never raised
            - Iteration advances one shared line buffer lazily; stop iterating to abort
        """
        pass

    @abstractmethod
    def detect_format(self, email_path: Path) -> str:
        """
        Detect whether the file at the given path is in this parser's format.

        Args:
            email_path: Path to email file

        Returns:
            The parser's format identifier, or 'unknown'

        Notes:
            - Inspects the file name and the first line only
        """
        pass

    def _open_buffer(self, email_path: Path) -> LineBuffer:
        """
        Load a whole file into a line buffer, honoring the size limit.

        Raises:
            FileNotFoundError: If the file doesn't exist
            InputTooLargeError: If the file exceeds limits.max_file_size_mb
        """
        return LineBuffer.from_file(email_path, self.config.max_file_size_bytes())

    def _open_archive(self, email_path: Path) -> Optional[LineBuffer]:
        """Open an archive file for iteration; None (logged) if it cannot be read."""
        try:
            buffer = self._open_buffer(email_path)
        except (OSError, InputTooLargeError) as e:
            logger.error("archive_unreadable", path=str(email_path), error=str(e))
            return None

        logger.info(
            "archive_opened",
            path=str(email_path),
            archive_format=self.format_name,
            lines=buffer.number_of_lines(),
        )
        return buffer


def read_first_line(email_path: Path) -> str:
    """First line of a file without its terminator, empty if unreadable."""
    try:
        with open(email_path, "rb") as f:
            first = f.readline()
    except OSError:
        return ""
    return first.rstrip(b"\r\n").decode("iso-8859-1")
