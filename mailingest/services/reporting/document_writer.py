"""Canonical XML document for parsed email messages."""

import base64
import re
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING

import structlog

from mailingest.models.field_names import ADDRESS_FIELDS, DATE_FIELDS
from mailingest.models.part_forest import ROOT_ID

if TYPE_CHECKING:
    from mailingest.models.email_message import EmailMessage

logger = structlog.get_logger()

# Applied to the part contents already
_SKIPPED_FIELDS = frozenset(["Content-Transfer-Encoding"])

_INDIVIDUAL_FIELDS = frozenset(["From"] + [name for _, name in ADDRESS_FIELDS])
_DATE_FIELDS = frozenset(name for _, name in DATE_FIELDS)

# Characters XML 1.0 does not allow anywhere in a document
_XML_ILLEGAL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")

# Address record key -> element name
_INDIVIDUAL_ELEMENTS = (
    ("first name", "first_name"),
    ("last name", "last_name"),
    ("full name", "full_name"),
    ("email", "email"),
)


def _element_name(field_name: str) -> str:
    return field_name.lower().replace("-", "_").replace(" ", "_")


def _xml_safe(text: str) -> str:
    """Replace characters that cannot appear in XML with U+FFFD."""
    return _XML_ILLEGAL.sub("\ufffd", text)


def _text_child(parent: ET.Element, tag: str, text: str) -> ET.Element:
    child = ET.SubElement(parent, tag)
    child.text = _xml_safe(text)
    return child


class DocumentWriter:
    """
    Serialize an EmailMessage to its canonical XML document.

    Layout::

        <email>
          <header>
            <from><raw>...</raw><individual>...</individual></from>
            ...
          </header>
          <body>
            <part type="multipart/mixed">
              <part type="text/plain">...</part>
            </part>
          </body>
        </email>

    Header elements appear in field name order. Text parts (and parts
    without a type) carry their decoded text, all other parts carry base64.
    """

    def write(self, message: "EmailMessage") -> str:
        """
        Build the document for one message.

        Args:
            message: Parsed message (partial results of failed messages are written as they are)

        Returns:
            XML document text without declaration
        """
        root = ET.Element("email")

        header = ET.SubElement(root, "header")
        names = set(message.fields) - _SKIPPED_FIELDS
        if message.received:
            names.add("Received")
        for name in sorted(names):
            self._write_field(header, message, name)

        body = ET.SubElement(root, "body")
        self._write_part(body, message, ROOT_ID)

        return ET.tostring(root, encoding="unicode")

    def _write_field(self, header: ET.Element, message: "EmailMessage", name: str) -> None:
        values = message.fields.get(name, {})
        item = ET.SubElement(header, _element_name(name))
        if "raw" in values:
            _text_child(item, "raw", values["raw"])

        if name == "To":
            self._write_individuals(item, message.to_addresses)
        elif name == "Cc":
            self._write_individuals(item, message.cc_addresses)
        elif name == "Bcc":
            self._write_individuals(item, message.bcc_addresses)
        elif name in _INDIVIDUAL_FIELDS:
            self._write_individual(item, values)
        elif name in _DATE_FIELDS:
            for key in ("date", "time", "timezone"):
                if key in values:
                    item.set(key, _xml_safe(values[key]))
        elif name == "Content-Type":
            self._write_content_type(item, values)
        elif name == "Received":
            for entry in message.received:
                reference = ET.SubElement(item, "reference")
                _text_child(reference, "raw", entry["raw"])
        elif name == "References":
            for entry in message.references:
                reference = ET.SubElement(item, "reference")
                _text_child(reference, "raw", entry["raw"])
                _text_child(reference, "id", entry["id"])
        elif name in ("Subject", "Old-Subject"):
            if "subject" in values:
                _text_child(item, "subject", values["subject"])
        elif name in ("Message-Id", "In-Reply-To"):
            if "id" in values:
                item.set("id", _xml_safe(values["id"]))
        elif name == "Resent-Message-Id":
            if "id" in values:
                _text_child(item, "id", values["id"])
        elif name == "Lines":
            if "lines" in values:
                item.set("lines", _xml_safe(values["lines"]))
        else:
            interpreted = sorted(set(values) - {"raw"})
            if interpreted:
                logger.warning("header_item_not_exported", item=name, elements=interpreted)

    def _write_individuals(self, item: ET.Element, addresses: list[dict[str, str]]) -> None:
        for address in addresses:
            self._write_individual(item, address)

    @staticmethod
    def _write_individual(item: ET.Element, address: dict[str, str]) -> None:
        individual = ET.SubElement(item, "individual")
        for key, tag in _INDIVIDUAL_ELEMENTS:
            if key in address:
                _text_child(individual, tag, address[key])

    @staticmethod
    def _write_content_type(item: ET.Element, values: dict[str, str]) -> None:
        if "type" in values:
            item.set("type", _xml_safe(values["type"]))

        remaining = sorted(set(values) - {"raw", "boundary", "type"})
        if remaining:
            logger.warning("content_type_attributes_not_exported", attributes=remaining)

    def _write_part(self, parent: ET.Element, message: "EmailMessage", part_id: int) -> None:
        element = parent
        if part_id != ROOT_ID:
            part = message.parts.parts[part_id]
            element = ET.SubElement(parent, "part", type=_xml_safe(part.content_type))
            if not part.content_type or part.content_type.startswith("text"):
                element.text = _xml_safe(part.content.decode("utf-8", errors="replace"))
            else:
                element.text = base64.b64encode(part.content).decode("ascii")

        for child_id in message.parts.child_ids(part_id):
            self._write_part(element, message, child_id)
