"""Apple Mail .emlx email parser implementation."""

import re
from pathlib import Path
from typing import Iterator

from mailingest.models.email_message import EmailMessage

from .base import EmailParser, read_first_line
from .message_builder import iter_messages

_BYTE_COUNT = re.compile(r"^\s*[0-9]+\s*$")


class EmlxParser(EmailParser):
    """
    Email parser for Apple Mail .emlx files.

    An .emlx file starts with the byte count of the message on a line of
    its own and ends with an XML property list that holds the client's
    metadata (flags, dates, remote id). The property list ends up in
    EmailMessage.archive_metadata, never in the body.
    """

    format_name = "emlx"

    def parse(self, email_path: Path) -> Iterator[EmailMessage]:
        """
        Parse .emlx file.

        Args:
            email_path: Path to .emlx file

        Yields:
            EmailMessage per stored message; nothing if the file is missing
            or too large
        """
        buffer = self._open_archive(email_path)
        if buffer is not None:
            yield from iter_messages(buffer, self.format_name, self.config)

    def detect_format(self, email_path: Path) -> str:
        """
        Detect if path is an .emlx file.

        Args:
            email_path: Path to check

        Returns:
            'emlx' for an .emlx extension or a numeric first line, 'unknown' otherwise
        """
        if not email_path.is_file():
            return "unknown"
        if email_path.suffix.lower() == ".emlx":
            return self.format_name
        if _BYTE_COUNT.match(read_first_line(email_path)):
            return self.format_name
        return "unknown"
