"""Entry points for importing messages from files."""

from pathlib import Path
from typing import Iterator, Optional, Union

from mailingest.config.import_config import AppConfig
from mailingest.models.email_message import EmailMessage

from .base import EmailParser, InvalidFormatError
from .eml_parser import EmlParser
from .emlx_parser import EmlxParser
from .mbox_parser import MboxParser

PathLike = Union[str, Path]

PARSERS: dict[str, type[EmailParser]] = {
    EmlxParser.format_name: EmlxParser,
    MboxParser.format_name: MboxParser,
    EmlParser.format_name: EmlParser,
}


def detect_archive_format(path: PathLike) -> str:
    """
    Decide how a file stores its messages.

    Checked in order: .emlx (extension or numeric first line), mbox (first
    line is a 'From ' marker), single message.

    Args:
        path: File to inspect

    Returns:
        'emlx', 'mbox', 'single', or 'unknown' if the file does not exist
    """
    path = Path(path)
    for parser_class in PARSERS.values():
        detected = parser_class().detect_format(path)
        if detected != "unknown":
            return detected
    return "unknown"


def get_parser(archive_format: str, config: Optional[AppConfig] = None) -> EmailParser:
    """
    Instantiate the parser for a format name.

    Raises:
        InvalidFormatError: If the format is not supported
    """
    if archive_format not in PARSERS:
        raise InvalidFormatError(f"Unsupported archive format: {archive_format}")
    return PARSERS[archive_format](config)


def import_single(path: PathLike, config: Optional[AppConfig] = None) -> EmailMessage:
    """Parse the one message stored in a file."""
    return EmlParser(config).parse_message(Path(path))


def import_mailbox_archive(path: PathLike, config: Optional[AppConfig] = None) -> Iterator[EmailMessage]:
    """Lazily parse the messages of an mbox archive."""
    return MboxParser(config).parse(Path(path))


def import_per_message_file_archive(
    path: PathLike, config: Optional[AppConfig] = None
) -> Iterator[EmailMessage]:
    """Lazily parse an Apple Mail .emlx file (byte-count line, message, property list)."""
    return EmlxParser(config).parse(Path(path))
