"""Email message data model."""

from dataclasses import dataclass, field
from typing import Optional

import structlog

from mailingest.services.reporting.document_writer import DocumentWriter

from .part_forest import ROOT_ID, PartForest

logger = structlog.get_logger()


@dataclass(frozen=True)
class SourceLocation:
    """Where a message came from: file name and index of its first line."""

    filename: str
    start_line: int

    def __post_init__(self):
        """Validate fields after initialization."""
        if self.start_line < 0:
            raise ValueError("start_line must not be negative")


@dataclass(frozen=True)
class Diagnostic:
    """First fatal parse failure of a message (line is -1 when not applicable)."""

    message: str
    line: int = -1


@dataclass
class EmailMessage:
    """
    Normalized representation of one stored email message.

    Attributes:
        source_location: Originating file and starting line index
        diagnostic: First fatal parse failure, None if parsing succeeded
        fields: Canonical header field name -> sub-values ('raw' plus derived keys)
        to_addresses: Parsed recipients of the To header
        cc_addresses: Parsed recipients of the Cc header
        bcc_addresses: Parsed recipients of the Bcc header
        references: Parsed References entries ('raw' and 'id')
        received: Received trace entries ('raw')
        parts: MIME body part forest
        archive_metadata: Trailing property list of .emlx messages
    """

    source_location: SourceLocation
    diagnostic: Optional[Diagnostic] = None
    fields: dict[str, dict[str, str]] = field(default_factory=dict)
    to_addresses: list[dict[str, str]] = field(default_factory=list)
    cc_addresses: list[dict[str, str]] = field(default_factory=list)
    bcc_addresses: list[dict[str, str]] = field(default_factory=list)
    references: list[dict[str, str]] = field(default_factory=list)
    received: list[dict[str, str]] = field(default_factory=list)
    parts: PartForest = field(default_factory=PartForest)
    archive_metadata: dict = field(default_factory=dict)

    def set_diagnostic(self, message: str, line: int = -1) -> None:
        """Record a fatal error unless an earlier one is already recorded."""
        if self.diagnostic is None:
            self.diagnostic = Diagnostic(message, line)

    # ---------------------------------------------------------------- errors

    def has_error(self) -> bool:
        return self.diagnostic is not None

    def get_error(self) -> str:
        return self.diagnostic.message if self.diagnostic else ""

    def get_error_line(self) -> int:
        return self.diagnostic.line if self.diagnostic else -1

    def get_filename(self) -> str:
        return self.source_location.filename

    def get_start_line_number(self) -> int:
        return self.source_location.start_line

    # ---------------------------------------------------------------- header

    def has_header_item(self, name: str, sub_item: Optional[str] = None) -> bool:
        """Check for a header field, or for one sub-value of it."""
        if name not in self.fields:
            return False
        return sub_item is None or sub_item in self.fields[name]

    def get_available_header_items(self) -> list[str]:
        return sorted(self.fields)

    def get_header_item(self, name: str) -> dict[str, str]:
        """
        Return all sub-values of a header field.

        Args:
            name: Canonical field name, e.g. 'Subject'

        Returns:
            Copy of the field's sub-mapping, empty if the field is absent
        """
        if name not in self.fields:
            logger.warning("header_item_missing", item=name, filename=self.get_filename())
            return {}
        return dict(self.fields[name])

    def get_header_sub_item(self, name: str, sub_item: str) -> str:
        """Return one sub-value of a header field, empty string if absent."""
        if not self.has_header_item(name, sub_item):
            logger.warning(
                "header_item_missing",
                item=name,
                sub_item=sub_item,
                filename=self.get_filename(),
            )
            return ""
        return self.fields[name][sub_item]

    def _indexed(self, entries: list[dict[str, str]], index: int, kind: str) -> dict[str, str]:
        if not 0 <= index < len(entries):
            logger.warning(
                "index_out_of_range",
                kind=kind,
                index=index,
                available=len(entries),
            )
            return {}
        return dict(entries[index])

    def get_number_of_to_addresses(self) -> int:
        return len(self.to_addresses)

    def get_to_address(self, index: int) -> dict[str, str]:
        return self._indexed(self.to_addresses, index, "to")

    def get_number_of_cc_addresses(self) -> int:
        return len(self.cc_addresses)

    def get_cc_address(self, index: int) -> dict[str, str]:
        return self._indexed(self.cc_addresses, index, "cc")

    def get_number_of_bcc_addresses(self) -> int:
        return len(self.bcc_addresses)

    def get_bcc_address(self, index: int) -> dict[str, str]:
        return self._indexed(self.bcc_addresses, index, "bcc")

    def get_number_of_references(self) -> int:
        return len(self.references)

    def get_reference(self, index: int) -> dict[str, str]:
        return self._indexed(self.references, index, "references")

    def get_number_of_received(self) -> int:
        return len(self.received)

    def get_received(self, index: int) -> dict[str, str]:
        return self._indexed(self.received, index, "received")

    # ----------------------------------------------------------------- parts

    def get_number_of_parts(self) -> int:
        return len(self.parts)

    def _valid_part(self, index: int) -> bool:
        if 0 <= index < len(self.parts):
            return True
        logger.warning(
            "index_out_of_range",
            kind="parts",
            index=index,
            available=len(self.parts),
        )
        return False

    def get_part(self, index: int) -> bytes:
        """Decoded payload of a part (empty for containers and invalid indices)."""
        return self.parts.parts[index].content if self._valid_part(index) else b""

    def get_part_info(self, index: int) -> dict[str, str]:
        return dict(self.parts.parts[index].info) if self._valid_part(index) else {}

    def get_part_type(self, index: int) -> str:
        return self.parts.parts[index].content_type if self._valid_part(index) else ""

    def get_part_parent_id(self, index: int) -> int:
        return self.parts.parts[index].parent_id if self._valid_part(index) else ROOT_ID

    def get_part_child_ids(self, index: int) -> list[int]:
        """Children of a part; ROOT_ID lists the top-level parts."""
        if index != ROOT_ID and not self._valid_part(index):
            return []
        return self.parts.child_ids(index)

    # ---------------------------------------------------------------- output

    def to_canonical_document(self) -> str:
        """Serialize the message to its canonical XML document."""
        return DocumentWriter().write(self)

    def dump(self) -> str:
        """
        Human-readable listing of everything that was parsed.

        Intended for debugging; the format is not stable.
        """
        lines = [
            f"Filename: {self.get_filename()}",
            f"Start line: {self.get_start_line_number()}",
        ]
        if self.has_error():
            lines.append(f"Error (line {self.get_error_line()}): {self.get_error()}")

        lines.append("Header:")
        for name in self.get_available_header_items():
            for sub_item in sorted(self.fields[name]):
                lines.append(f"  {name} / {sub_item}: {self.fields[name][sub_item]}")

        for title, entries in (
            ("To", self.to_addresses),
            ("Cc", self.cc_addresses),
            ("Bcc", self.bcc_addresses),
            ("References", self.references),
            ("Received", self.received),
        ):
            for index, entry in enumerate(entries):
                values = ", ".join(f"{key}: {entry[key]}" for key in sorted(entry))
                lines.append(f"  {title} #{index}: {values}")

        lines.append("Body:")
        for index, part in enumerate(self.parts.parts):
            lines.append(
                f"  Part #{index} ({part.content_type or 'no type'}), "
                f"parent {part.parent_id}, children {self.parts.child_ids(index)}, "
                f"{len(part.content)} bytes"
            )

        return "\n".join(lines)
