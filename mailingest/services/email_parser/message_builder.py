"""Assemble one message from a line buffer: header, body, next-message scan."""

from typing import Iterator, Optional

import structlog

from mailingest.config.import_config import AppConfig
from mailingest.models.email_message import EmailMessage, SourceLocation
from mailingest.utils.line_buffer import LineBuffer

from .base import FatalParseError
from .body_parser import read_body
from .header_parser import read_header

logger = structlog.get_logger()


def _record_failure(message: EmailMessage, stage: str, error: FatalParseError) -> None:
    logger.error(
        "message_parse_failed",
        stage=stage,
        error=str(error),
        line=error.line,
        filename=message.get_filename(),
        start_line=message.get_start_line_number(),
    )
    message.set_diagnostic(str(error), error.line)


def skip_to_next_message(buffer: LineBuffer) -> None:
    """Advance an mbox buffer to the next 'From ' marker line (or its end)."""
    while not buffer.at_end():
        if buffer.peek_line().startswith("From "):
            return
        buffer.read_line()


def build_message(
    buffer: LineBuffer,
    archive_format: str = "single",
    config: Optional[AppConfig] = None,
) -> EmailMessage:
    """
    Parse the message starting at the buffer's current position.

    The body is read even when the header failed so that the buffer moves
    past the message; the first fatal error stays the message's diagnostic.
    For mbox buffers the position is left on the next message's marker.

    Args:
        buffer: Line buffer positioned at the first line of a message
        archive_format: 'single', 'mbox' or 'emlx'
        config: Application configuration (defaults apply when omitted)

    Returns:
        The parsed message, with a diagnostic if parsing failed
    """
    config = config or AppConfig()
    message = EmailMessage(SourceLocation(buffer.filename(), buffer.current_line_index()))

    try:
        read_header(buffer, message, archive_format)
    except FatalParseError as e:
        _record_failure(message, "header", e)

    try:
        read_body(buffer, message, archive_format, config.parsing)
    except FatalParseError as e:
        _record_failure(message, "body", e)

    if archive_format == "mbox":
        skip_to_next_message(buffer)

    logger.debug(
        "message_built",
        filename=message.get_filename(),
        start_line=message.get_start_line_number(),
        parts=message.get_number_of_parts(),
        failed=message.has_error(),
    )
    return message


def iter_messages(
    buffer: LineBuffer,
    archive_format: str,
    config: Optional[AppConfig] = None,
) -> Iterator[EmailMessage]:
    """
    Yield every message of an archive buffer, in file order.

    Blank lines ahead of the first message are skipped. Each message is
    built only when the caller asks for it.
    """
    while not buffer.at_end() and not buffer.peek_line().strip():
        buffer.read_line()

    count = 0
    while not buffer.at_end():
        yield build_message(buffer, archive_format, config)
        count += 1

    logger.info("archive_finished", path=buffer.filename(), messages=count)
