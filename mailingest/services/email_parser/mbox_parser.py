"""mbox format email parser implementation."""

from pathlib import Path
from typing import Iterator

from mailingest.models.email_message import EmailMessage

from .base import EmailParser, read_first_line
from .message_builder import iter_messages


class MboxParser(EmailParser):
    """Email parser for mbox files: messages separated by 'From ' marker lines."""

    format_name = "mbox"

    def parse(self, email_path: Path) -> Iterator[EmailMessage]:
        """
        Parse mbox file and yield one message per marker line.

        Args:
            email_path: Path to mbox file

        Yields:
            EmailMessage per stored message, in file order; nothing if the
            file is missing or too large
        """
        buffer = self._open_archive(email_path)
        if buffer is not None:
            yield from iter_messages(buffer, self.format_name, self.config)

    def detect_format(self, email_path: Path) -> str:
        """
        Detect if path is an mbox file.

        Args:
            email_path: Path to check

        Returns:
            'mbox' if the first line is a 'From ' marker, 'unknown' otherwise
        """
        if email_path.is_file() and read_first_line(email_path).startswith("From "):
            return self.format_name
        return "unknown"
