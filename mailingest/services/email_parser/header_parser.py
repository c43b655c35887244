"""Read the header block of a message into its fields."""

import re

import structlog

from mailingest.models.email_message import EmailMessage
from mailingest.utils.line_buffer import LineBuffer

from .base import FatalParseError
from .header_fields import HEADER_FIELDS, apply_field, is_ignored_tag

logger = structlog.get_logger()

HEADER_ITEM = re.compile(r"^([^\(\s][^: ]*):(\s*)?(\s+(\S.*))?$", re.DOTALL)
_EMLX_BYTE_COUNT = re.compile(r"^\s*[0-9]+\s*$")


def _next_line(buffer: LineBuffer) -> str:
    """Read the next line; the end of the buffer reads as an empty line."""
    return "" if buffer.at_end() else buffer.read_line()


def read_header(buffer: LineBuffer, message: EmailMessage, archive_format: str = "single") -> None:
    """
    Consume header lines up to the first empty line.

    Folded continuation lines are joined to their item with single spaces.
    Each item is dispatched on its lower-case tag through HEADER_FIELDS;
    x- tags are ignored, other unknown tags are logged and dropped.

    Args:
        buffer: Line buffer positioned at the first line of the message
        message: Message receiving the fields
        archive_format: 'single', 'mbox' or 'emlx'

    Raises:
        FatalParseError: If an item is malformed, an .emlx message does not
            start with its byte count, or From or Date is missing
    """
    line = _next_line(buffer)

    if archive_format == "emlx":
        if not _EMLX_BYTE_COUNT.match(line):
            raise FatalParseError(f'First line should contain a number but is "{line}".')
        line = _next_line(buffer)

    # mbox separator line (only ever the first line)
    if line.startswith("From "):
        line = _next_line(buffer)

    while line:
        item = line
        item_start_line = buffer.current_line_index()

        line = _next_line(buffer)
        while line and not HEADER_ITEM.match(line):
            item += " " + line
            line = _next_line(buffer)

        match = HEADER_ITEM.match(item)
        if not match:
            raise FatalParseError(f'Invalid header item structure: "{item}"', item_start_line)

        tag = match.group(1).lower()
        body = (match.group(4) or "").strip()

        spec = HEADER_FIELDS.get(tag)
        if spec is not None:
            apply_field(message, spec, body)
        elif not is_ignored_tag(tag):
            logger.warning(
                "unknown_header_item",
                tag=tag,
                body=body,
                filename=buffer.filename(),
                line=item_start_line,
            )

    if "To" not in message.fields:
        message.fields["To"] = {"full name": "Undisclosed recipients"}
    if "Subject" not in message.fields:
        message.fields["Subject"] = {"subject": "(no subject)"}

    if "From" not in message.fields:
        raise FatalParseError('Error in email header: no sender ("from") specified.')
    if "Date" not in message.fields:
        raise FatalParseError("Error in email header: no date specified.")
