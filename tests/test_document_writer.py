"""Tests for the canonical XML document."""

import xml.etree.ElementTree as ET

import pytest
from structlog.testing import capture_logs

from mailingest.services.email_parser import import_single
from mailingest.services.email_parser.message_builder import build_message
from mailingest.services.reporting.document_writer import DocumentWriter


@pytest.fixture
def simple_document(fixtures_dir):
    return import_single(fixtures_dir / "simple.eml").to_canonical_document()


class TestHeaderElements:
    """Test the header section of the document."""

    def test_field_elements(self, simple_document):
        """Test one element per field in name order, without transfer encoding."""
        header = ET.fromstring(simple_document).find("header")

        assert [child.tag for child in header] == [
            "cc",
            "content_type",
            "date",
            "from",
            "message_id",
            "mime_version",
            "received",
            "references",
            "return_path",
            "subject",
            "to",
        ]

    def test_individuals(self, simple_document):
        """Test address fields carry individual elements."""
        header = ET.fromstring(simple_document).find("header")

        assert header.find("from/individual/last_name").text == "Doe"
        assert header.find("from/individual/first_name").text == "John"
        assert header.find("from/individual/full_name").text == "John Doe"
        assert header.find("from/individual/email").text == "john.doe@foo.com"
        assert len(header.findall("to/individual")) == 2
        assert header.find("cc/individual/email").text == "team@bar.com"

    def test_date_attributes(self, simple_document):
        """Test date, time and timezone attributes."""
        date = ET.fromstring(simple_document).find("header/date")

        assert date.get("date") == "2017-01-10"
        assert date.get("time") == "19:28:58"
        assert date.get("timezone") == "+0100"
        assert date.find("raw").text == "Tue, 10 Jan 2017 19:28:58 +0100"

    def test_ids_and_subject(self, simple_document):
        """Test Message-Id and Subject derived values."""
        header = ET.fromstring(simple_document).find("header")

        assert header.find("message_id").get("id") == "20170110192858.12345@foo.com"
        assert header.find("subject/subject").text == "Quarterly report & figures"
        assert header.find("content_type").get("type") == "text/plain"

    def test_received_and_references(self, simple_document):
        """Test repeated reference elements."""
        header = ET.fromstring(simple_document).find("header")

        received = header.findall("received/reference/raw")
        assert len(received) == 1
        assert received[0].text.startswith("from mail.foo.com")
        assert [e.text for e in header.findall("references/reference/id")] == ["a1@foo.com", "b2@foo.com"]

    def test_markup_characters_escaped(self, simple_document):
        """Test &, < and > are escaped in text."""
        assert "Quarterly report &amp; figures" in simple_document
        assert "&lt;attached&gt; &amp; ready" in simple_document

    def test_cc_without_bcc(self, make_buffer):
        """Test every Cc entry is written even when there is no Bcc."""
        message = build_message(
            make_buffer("From: a@b.c\nDate: Tue, 10 Jan 2017 19:28:58 +0100\nCc: x@y.z, w@y.z\n\n")
        )

        header = ET.fromstring(message.to_canonical_document()).find("header")

        assert [e.text for e in header.findall("cc/individual/email")] == ["x@y.z", "w@y.z"]

    def test_unexported_values_logged(self, make_buffer):
        """Test interpreted values without an XML form are reported."""
        message = build_message(
            make_buffer("From: a@b.c\nDate: Tue, 10 Jan 2017 19:28:58 +0100\nKeywords: alpha, beta\n\n")
        )

        with capture_logs() as logs:
            DocumentWriter().write(message)

        events = [log for log in logs if log["event"] == "header_item_not_exported"]
        assert events[0]["item"] == "Keywords"


class TestBodyElements:
    """Test the body section of the document."""

    def test_text_part(self, simple_document):
        """Test text parts carry their decoded text."""
        part = ET.fromstring(simple_document).find("body/part")

        assert part.get("type") == "text/plain"
        assert part.text == "Hello Jane,\nthe numbers are <attached> & ready. Café at noon?\n"

    def test_nested_parts(self, fixtures_dir):
        """Test parts nest like the part forest and binaries are base64."""
        document = import_single(fixtures_dir / "multipart.eml").to_canonical_document()
        body = ET.fromstring(document).find("body")

        mixed = body.find("part")
        assert mixed.get("type") == "multipart/mixed"
        assert [p.get("type") for p in mixed.findall("part")] == ["multipart/alternative", "application/pdf"]
        assert [p.get("type") for p in mixed.findall("part/part")] == ["text/plain", "text/html"]
        assert mixed.find("part[@type='application/pdf']").text == "JVBERi0xLjQK"

    def test_same_as_writer(self, fixtures_dir):
        """Test the message shortcut uses the writer."""
        message = import_single(fixtures_dir / "simple.eml")

        assert message.to_canonical_document() == DocumentWriter().write(message)


class TestXmlSafety:
    """Test characters that XML cannot carry."""

    def test_control_characters_replaced(self, make_buffer):
        """Test a form feed in the body and a control character in the header."""
        message = build_message(
            make_buffer(
                "From: a@b.c\nDate: Tue, 10 Jan 2017 19:28:58 +0100\n"
                "Subject: a\x01b\n\npage one\x0cpage two\n"
            )
        )

        root = ET.fromstring(message.to_canonical_document())

        assert root.find("body/part").text == "page one\ufffdpage two\n"
        assert "\ufffd" in root.find("header/subject/raw").text

    def test_tabs_and_newlines_kept(self, make_buffer):
        """Test whitespace allowed by XML passes unchanged."""
        message = build_message(
            make_buffer("From: a@b.c\nDate: Tue, 10 Jan 2017 19:28:58 +0100\n\ncol1\tcol2\n")
        )

        root = ET.fromstring(message.to_canonical_document())

        assert root.find("body/part").text == "col1\tcol2\n"
