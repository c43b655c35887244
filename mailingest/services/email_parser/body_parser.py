"""Read the MIME body of a message into its part forest."""

import plistlib
import re
from typing import Optional
from xml.parsers.expat import ExpatError

import structlog

from mailingest.config.import_config import ParsingConfig
from mailingest.models.email_message import EmailMessage
from mailingest.models.part_forest import ROOT_ID
from mailingest.utils.line_buffer import LineBuffer
from mailingest.utils.unicode_utils import decode_if_necessary, decode_text

from .base import FatalParseError
from .constants import EMLX_PLIST_END, EMLX_PLIST_PROLOGUE, SIMPLE_CONTENT_TYPES

logger = structlog.get_logger()

PART_HEADER_ITEM = re.compile(r"^([^:\s]+):\s*(\S.*)?$", re.DOTALL)
_VALUE_AND_PARAMETERS = re.compile(r"^([^\s;]+)(;(\s*(\S.*))?)?$", re.DOTALL)
_CONTENT_TYPE_PARAMETER = re.compile(r'^([^\s=]+)=("[^"]+"|[^\s;"]+);?\s*([^\s;].*)?$', re.DOTALL)
_DISPOSITION_PARAMETER = re.compile(r'^([^\s=]+)=("[^"]*"|[^\s;"]+);?\s*([^\s;].*)?$', re.DOTALL)

# Content-Type parameters of a part that are kept verbatim
_COPIED_CONTENT_TYPE_PARAMETERS = frozenset(
    [
        "boundary",
        "delsp",
        "format",
        "method",
        "x-apple-mail-type",
        "x-apple-part-url",
        "x-mac-creator",
        "x-mac-hide-extension",
        "x-mac-type",
        "x-unix-mode",
    ]
)
_COPIED_DISPOSITION_PARAMETERS = frozenset(["creation-date", "modification-date", "size"])


class BodyParser:
    """
    Recursive descent over the body of one message.

    Leaf parts end at a delimiter line of the enclosing multipart, at the
    next mbox message, at the trailing property list of an .emlx file, or
    at the end of the buffer. Parts are registered in the message's part
    forest in the order they are met.
    """

    def __init__(
        self,
        buffer: LineBuffer,
        message: EmailMessage,
        archive_format: str = "single",
        config: Optional[ParsingConfig] = None,
    ):
        """
        Initialize body parser.

        Args:
            buffer: Line buffer positioned on the first body line
            message: Message whose header has been read
            archive_format: 'single', 'mbox' or 'emlx'
            config: Parsing options (defaults apply when omitted)
        """
        self.buffer = buffer
        self.message = message
        self.is_mbox = archive_format == "mbox"
        self.is_emlx = archive_format == "emlx"
        self.config = config or ParsingConfig()

    def read(self) -> None:
        """
        Parse the whole body.

        Raises:
            FatalParseError: If the MIME structure cannot be followed
        """
        content_type = self.message.fields.get("Content-Type", {})

        header = {"content-type": content_type.get("type", "")}
        for key in ("boundary", "charset"):
            if key in content_type:
                header[key] = content_type[key]
        if "Content-Transfer-Encoding" in self.message.fields:
            header["transfer-encoding"] = self.message.fields["Content-Transfer-Encoding"]["encoding"]

        if header["content-type"].startswith("multipart"):
            self._read_multipart(header, ROOT_ID)
        else:
            self._read_part({}, header, ROOT_ID)

    def _line_number(self) -> int:
        return self.buffer.current_line_index()

    def _read_part(self, parent_header: dict, part_header: dict, parent_id: int) -> None:
        content_type = part_header.get("content-type", "")

        if self.buffer.at_end():
            if parent_id != ROOT_ID:
                raise FatalParseError(
                    f"Unexpected end of file reading a {content_type} part in line {self._line_number()}.",
                    self._line_number(),
                )
        elif self.is_mbox and self.buffer.peek_line().startswith("From "):
            raise FatalParseError(
                f"{content_type} part unexpectedly ended by new email in line {self._line_number()}.",
                self._line_number(),
            )

        if not content_type:
            default_header = dict(part_header)
            default_header["content-type"] = self.config.default_content_type
            self._save_part(parent_header, default_header, parent_id)
        elif content_type in SIMPLE_CONTENT_TYPES:
            self._save_part(parent_header, part_header, parent_id)
        elif content_type.startswith("multipart"):
            self._read_multipart(part_header, parent_id)
        else:
            raise FatalParseError(f'Unknown content type "{content_type}"', self._line_number())

    def _read_part_header(self) -> dict[str, str]:
        """Read the header block of one multipart entry, consuming its blank terminator."""
        header: dict[str, str] = {}

        while True:
            if self.buffer.at_end():
                raise FatalParseError("Unexpected end of file reading part header", self._line_number())

            line = self.buffer.peek_line()
            if self.is_mbox and line.startswith("From "):
                raise FatalParseError("Part header unexpectedly ended by new email.", self._line_number())

            if not line:
                self.buffer.read_line()
                return header

            # Entries without any header, e.g. a bare warning text
            if not PART_HEADER_ITEM.match(line):
                return header

            item = self.buffer.read_line()
            item_start_line = self._line_number()
            while not self.buffer.at_end():
                following = self.buffer.peek_line()
                if not following or PART_HEADER_ITEM.match(following):
                    break
                item += self.buffer.read_line()

            self._interpret_part_header_item(header, item, item_start_line)

    def _interpret_part_header_item(self, header: dict, item: str, item_start_line: int) -> None:
        match = PART_HEADER_ITEM.match(item)
        tag = match.group(1).lower()
        body = match.group(2) or ""

        if tag == "content-type":
            split = _VALUE_AND_PARAMETERS.match(body)
            if not split:
                raise FatalParseError(
                    f'Invalid item structure for Content-Type in multipart header: "{body}"',
                    item_start_line,
                )
            content_type = split.group(1).lower()
            header["content-type"] = "" if content_type == "unknown/unknown" else content_type

            for name, value in self._parameters(split.group(4), _CONTENT_TYPE_PARAMETER):
                if name == "charset":
                    header["charset"] = value.lower()
                elif name == "name":
                    header["name"] = decode_if_necessary(value)
                elif name in _COPIED_CONTENT_TYPE_PARAMETERS:
                    header[name] = value
                elif name != "type":
                    logger.warning(
                        "unknown_content_type_parameter",
                        parameter=name,
                        value=value,
                        line=item_start_line,
                    )

        elif tag == "content-transfer-encoding":
            header["transfer-encoding"] = body.lower()

        elif tag == "content-disposition":
            split = _VALUE_AND_PARAMETERS.match(body)
            if not split:
                raise FatalParseError(
                    f'Invalid item structure for Content-Disposition in multipart header: "{body}"',
                    item_start_line,
                )
            header["content-disposition"] = split.group(1).lower()

            for name, value in self._parameters(split.group(4), _DISPOSITION_PARAMETER):
                if name in ("filename", "filename*"):
                    header["filename"] = decode_if_necessary(value)
                elif name in _COPIED_DISPOSITION_PARAMETERS:
                    header[name] = value
                else:
                    logger.warning(
                        "unknown_content_disposition_parameter",
                        parameter=name,
                        value=value,
                        line=item_start_line,
                    )

        else:
            header[tag] = body

    @staticmethod
    def _parameters(rest: Optional[str], grammar: re.Pattern):
        """Yield (lower-case name, unquoted value) pairs from a parameter list."""
        rest = rest or ""
        match = grammar.match(rest)
        while match:
            yield match.group(1).lower(), match.group(2).replace('"', "")
            rest = match.group(3) or ""
            match = grammar.match(rest)

    def _is_delimiter(self, line: str, boundary: Optional[str]) -> bool:
        if not boundary:
            return False
        line = line.rstrip(" \t")
        return line in (f"--{boundary}", f"--{boundary}--")

    def _save_part(self, parent_header: dict, part_header: dict, parent_id: int) -> None:
        boundary = parent_header.get("boundary")
        lines = []

        while not self.buffer.at_end():
            line = self.buffer.peek_line()

            if self._is_delimiter(line, boundary):
                break
            if self.is_mbox and line.startswith("From "):
                break

            raw = self.buffer.read_raw_line()
            if self.is_emlx and self._consume_plist(line):
                break
            lines.append(raw)

        body = b"".join(line + b"\n" for line in lines)
        content = decode_text(
            body,
            part_header.get("charset", ""),
            part_header.get("transfer-encoding", ""),
        )
        part_id = self.message.parts.add_part(
            content,
            part_header.get("content-type", ""),
            part_header,
            parent_id,
        )
        logger.debug(
            "part_saved",
            part_id=part_id,
            content_type=part_header.get("content-type", ""),
            size=len(content),
        )

    def _read_multipart(self, header: dict, parent_id: int) -> None:
        content_type = header.get("content-type", "")
        part_id = self.message.parts.add_part(b"", content_type, {}, parent_id)

        boundary = header.get("boundary")
        if not boundary:
            raise FatalParseError(f"No boundary given for {content_type} part", self._line_number())

        start = f"--{boundary}"
        end = f"--{boundary}--"

        while True:
            # Skip preamble and anything between the parts
            while True:
                if self.buffer.at_end():
                    raise FatalParseError("End of file reached while reading multipart.", self._line_number())
                line = self.buffer.read_line().rstrip(" \t")
                if line == start or line == end:
                    break
                if self.is_mbox and line.startswith("From "):
                    self.buffer.rewind(1)
                    raise FatalParseError("New email starts while reading multipart.", self._line_number())

            if line == end:
                break

            part_header = self._read_part_header()
            self._read_part(header, part_header, part_id)

        if self.is_emlx and parent_id == ROOT_ID:
            self._skip_epilogue()

    def _skip_epilogue(self) -> None:
        """Skip lines after the outermost closing delimiter up to and including the plist."""
        while not self.buffer.at_end():
            if self._consume_plist(self.buffer.read_line()):
                return

    def _consume_plist(self, first_line: str) -> bool:
        """
        Consume the .emlx trailing property list if first_line opens it.

        Called right after first_line was read. On a partial match the buffer
        is moved back so the lines read ahead count as ordinary content.

        Returns:
            True if a property list was consumed
        """
        if first_line.lower() != EMLX_PLIST_PROLOGUE[0].lower():
            return False

        resume_at = self.buffer.current_line_index()
        collected = [EMLX_PLIST_PROLOGUE[0].replace("XML", "xml")]

        doctype = "" if self.buffer.at_end() else self.buffer.read_line()
        opening = "" if self.buffer.at_end() else self.buffer.read_line()
        if not doctype.startswith(EMLX_PLIST_PROLOGUE[1]) or opening != EMLX_PLIST_PROLOGUE[2]:
            self.buffer.move_to(resume_at)
            return False

        collected += [doctype, opening]
        line = opening
        while line != EMLX_PLIST_END:
            if self.buffer.at_end():
                raise FatalParseError("Unexpected end of EMLX file.", self._line_number())
            line = self.buffer.read_line()
            collected.append(line)

        logger.debug("emlx_plist_skipped", line=resume_at)
        self._store_archive_metadata(collected)
        return True

    def _store_archive_metadata(self, lines: list[str]) -> None:
        if not self.config.parse_archive_metadata:
            return
        try:
            self.message.archive_metadata = plistlib.loads("\n".join(lines).encode("utf-8"))
        except (plistlib.InvalidFileException, ExpatError, ValueError) as e:
            logger.warning("emlx_plist_unreadable", error=str(e), filename=self.buffer.filename())


def read_body(
    buffer: LineBuffer,
    message: EmailMessage,
    archive_format: str = "single",
    config: Optional[ParsingConfig] = None,
) -> None:
    """
    Read the body following a parsed header into message.parts.

    Raises:
        FatalParseError: If the MIME structure cannot be followed
    """
    BodyParser(buffer, message, archive_format, config).read()
