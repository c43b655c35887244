"""Single-message file parser implementation."""

from pathlib import Path
from typing import Iterator

import structlog

from mailingest.models.email_message import EmailMessage, SourceLocation
from mailingest.utils.line_buffer import InputTooLargeError

from .base import EmailParser
from .message_builder import build_message

logger = structlog.get_logger()


class EmlParser(EmailParser):
    """Email parser for files holding exactly one message (.eml and alike)."""

    format_name = "single"

    def parse_message(self, email_path: Path) -> EmailMessage:
        """
        Parse the single message stored in a file.

        Args:
            email_path: Path to the message file

        Returns:
            The message; a missing, unreadable or oversized file gives a
            message whose diagnostic says so
        """
        try:
            buffer = self._open_buffer(email_path)
        except (OSError, InputTooLargeError) as e:
            logger.error("message_file_unreadable", path=str(email_path), error=str(e))
            message = EmailMessage(SourceLocation(str(email_path), 0))
            message.set_diagnostic(f'Could not open file "{email_path}"')
            return message

        return build_message(buffer, self.format_name, self.config)

    def parse(self, email_path: Path) -> Iterator[EmailMessage]:
        """
        Parse a single-message file.

        Args:
            email_path: Path to the message file

        Yields:
            Exactly one EmailMessage
        """
        yield self.parse_message(email_path)

    def detect_format(self, email_path: Path) -> str:
        """
        Detect if path is a regular file that can hold a message.

        Args:
            email_path: Path to check

        Returns:
            'single' for any existing regular file, 'unknown' otherwise
        """
        if email_path.is_file():
            return self.format_name
        return "unknown"
