"""Tests for header reading."""

import pytest
from structlog.testing import capture_logs

from mailingest.models.email_message import EmailMessage, SourceLocation
from mailingest.services.email_parser.base import FatalParseError
from mailingest.services.email_parser.header_parser import read_header

DATE_LINE = "Date: Tue, 10 Jan 2017 19:28:58 +0100\n"


@pytest.fixture
def message():
    return EmailMessage(SourceLocation("test.eml", 0))


class TestReadHeader:
    """Test header items and their dispatch."""

    def test_basic_fields(self, make_buffer, message):
        """Test the usual fields end up in the field map."""
        buffer = make_buffer(
            "From: Jane Roe <jane@bar.com>\n"
            "To: john@foo.com, bob@baz.org\n"
            "Subject: Status update\n" + DATE_LINE + "Message-ID: <abc@bar.com>\n"
            "\n"
            "body\n"
        )

        read_header(buffer, message)

        assert message.fields["From"]["full name"] == "Jane Roe"
        assert message.fields["Subject"]["subject"] == "Status update"
        assert message.fields["Message-Id"]["id"] == "abc@bar.com"
        assert message.fields["Date"]["time UTC"] == "18:28:58"
        assert [a["email"] for a in message.to_addresses] == ["john@foo.com", "bob@baz.org"]
        assert buffer.read_line() == "body"

    def test_folded_item(self, make_buffer, message):
        """Test continuation lines are joined to their item."""
        buffer = make_buffer("From: a@b.c\n" + DATE_LINE + "Subject: Status\n update for\n\tthe week\n\n")

        read_header(buffer, message)

        assert message.fields["Subject"]["subject"] == "Status update for the week"

    def test_extension_tags_ignored_unknown_tags_logged(self, make_buffer, message):
        """Test x- tags are dropped silently and unknown tags with a warning."""
        buffer = make_buffer("From: a@b.c\n" + DATE_LINE + "X-Custom-Trace: abc\nUnknown-Field: value\n\n")

        with capture_logs() as logs:
            read_header(buffer, message)

        unknown = [log for log in logs if log["event"] == "unknown_header_item"]
        assert [log["tag"] for log in unknown] == ["unknown-field"]
        assert unknown[0]["log_level"] == "warning"
        assert "X-Custom-Trace" not in message.fields
        assert "Unknown-Field" not in message.fields
        assert not message.has_error()

    def test_defaults_for_to_and_subject(self, make_buffer, message):
        """Test missing To and Subject get placeholder values."""
        read_header(make_buffer("From: a@b.c\n" + DATE_LINE + "\n"), message)

        assert message.fields["To"] == {"full name": "Undisclosed recipients"}
        assert message.fields["Subject"] == {"subject": "(no subject)"}

    def test_received_collected(self, make_buffer, message):
        """Test every Received item is kept in order."""
        buffer = make_buffer(
            "Received: from a by b\nReceived: from c\n by d\nFrom: a@b.c\n" + DATE_LINE + "\n"
        )

        read_header(buffer, message)

        assert [r["raw"] for r in message.received] == ["from a by b", "from c  by d"]
        assert "Received" not in message.fields

    def test_references(self, make_buffer, message):
        """Test References are split into ids."""
        buffer = make_buffer("From: a@b.c\n" + DATE_LINE + "References: <a1@foo.com> <b2@foo.com>\n\n")

        read_header(buffer, message)

        assert [r["id"] for r in message.references] == ["a1@foo.com", "b2@foo.com"]

    def test_cc_and_bcc(self, make_buffer, message):
        """Test Cc and Bcc lists."""
        buffer = make_buffer("From: a@b.c\n" + DATE_LINE + "Cc: x@y.z, w@y.z\nBcc: secret@y.z\n\n")

        read_header(buffer, message)

        assert message.get_number_of_cc_addresses() == 2
        assert message.get_bcc_address(0) == {"email": "secret@y.z"}

    def test_mbox_separator_skipped(self, make_buffer, message):
        """Test the mbox 'From ' line is not a header item."""
        buffer = make_buffer("From a@b.c Tue Jan 10 19:28:58 2017\nFrom: a@b.c\n" + DATE_LINE + "\n")

        read_header(buffer, message, "mbox")

        assert message.fields["From"]["email"] == "a@b.c"

    def test_end_of_input_ends_header(self, make_buffer, message):
        """Test a header without a blank line after it."""
        read_header(make_buffer("From: a@b.c\n" + DATE_LINE), message)

        assert "Date" in message.fields


class TestHeaderErrors:
    """Test fatal header conditions."""

    def test_missing_from(self, make_buffer, message):
        """Test a message without sender fails."""
        with pytest.raises(FatalParseError, match="no sender"):
            read_header(make_buffer("To: x@y.z\n" + DATE_LINE + "\n"), message)

        assert "From" not in message.fields

    def test_missing_date(self, make_buffer, message):
        """Test a message without date fails."""
        with pytest.raises(FatalParseError, match="no date"):
            read_header(make_buffer("From: a@b.c\n\n"), message)

    def test_missing_from_reported_before_date(self, make_buffer, message):
        """Test the sender check comes first."""
        with pytest.raises(FatalParseError, match="no sender"):
            read_header(make_buffer("Subject: nothing\n\n"), message)

    def test_invalid_item_structure(self, make_buffer, message):
        """Test a tag without whitespace after the colon."""
        with pytest.raises(FatalParseError, match="Invalid header item structure") as excinfo:
            read_header(make_buffer("Subject:NoSpace\nFrom: a@b.c\n\n"), message)

        assert excinfo.value.line == 1

    def test_emlx_needs_byte_count(self, make_buffer, message):
        """Test .emlx messages start with their byte count."""
        with pytest.raises(FatalParseError, match="First line should contain a number"):
            read_header(make_buffer("From: a@b.c\n" + DATE_LINE + "\n"), message, "emlx")

    def test_emlx_byte_count_consumed(self, make_buffer, message):
        """Test a padded byte count line is accepted."""
        read_header(make_buffer("1234     \nFrom: a@b.c\n" + DATE_LINE + "\n"), message, "emlx")

        assert "From" in message.fields
