"""Email parsing services."""

from .base import EmailParseError, EmailParser, FatalParseError, InvalidFormatError
from .eml_parser import EmlParser
from .emlx_parser import EmlxParser
from .importers import (
    detect_archive_format,
    get_parser,
    import_mailbox_archive,
    import_per_message_file_archive,
    import_single,
)
from .mbox_parser import MboxParser
from .message_builder import build_message, iter_messages

__all__ = [
    "EmailParser",
    "EmailParseError",
    "FatalParseError",
    "InvalidFormatError",
    "EmlParser",
    "EmlxParser",
    "MboxParser",
    "build_message",
    "iter_messages",
    "detect_archive_format",
    "get_parser",
    "import_mailbox_archive",
    "import_per_message_file_archive",
    "import_single",
]
