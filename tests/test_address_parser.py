"""Tests for address parsing."""

import pytest
from structlog.testing import capture_logs

from mailingest.services.email_parser.address_parser import parse_address, parse_address_list


class TestParseAddress:
    """Test single mailbox grammars."""

    def test_last_first_quoted(self):
        """Test "last, first" <address> splits the name."""
        assert parse_address('"Doe, John" <john.doe@foo.com>') == {
            "last name": "Doe",
            "first name": "John",
            "full name": "John Doe",
            "email": "john.doe@foo.com",
        }

    def test_bare_address(self):
        """Test a plain address."""
        assert parse_address("john.doe@foo.com") == {"email": "john.doe@foo.com"}

    def test_bracketed_address(self):
        """Test an address in angle brackets only."""
        assert parse_address("<john.doe@foo.com>") == {"email": "john.doe@foo.com"}

    def test_name_and_bracketed_address(self):
        """Test an unquoted display name."""
        assert parse_address("Jane Roe <jane@bar.com>") == {"full name": "Jane Roe", "email": "jane@bar.com"}

    def test_quoted_name(self):
        """Test a quoted display name without comma."""
        assert parse_address('"Jane Roe" <jane@bar.com>') == {"full name": "Jane Roe", "email": "jane@bar.com"}

    def test_name_then_address_without_brackets(self):
        """Test a name followed by a bare address."""
        assert parse_address("Jane Roe jane@bar.com") == {"full name": "Jane Roe", "email": "jane@bar.com"}

    def test_address_with_comment(self):
        """Test the old 'address (Name)' form."""
        assert parse_address("jane@bar.com (Jane Roe)") == {"full name": "Jane Roe", "email": "jane@bar.com"}

    def test_local_user_with_comment(self):
        """Test local system mail without a domain."""
        assert parse_address("jane (Jane Roe)") == {"full name": "Jane Roe", "email": "jane@localhost"}

    def test_encoded_name(self):
        """Test encoded words in the display name are decoded."""
        result = parse_address("=?utf-8?Q?Ren=C3=A9_Roe?= <rene@bar.com>")
        assert result == {"full name": "René Roe", "email": "rene@bar.com"}

    def test_suppressed_recipients(self):
        """Test phrases hiding the recipient list map to a name-only record."""
        assert parse_address("Undisclosed recipients:;") == {"full name": "Undisclosed recipients"}

    def test_unknown_format(self):
        """Test unparseable input gives an empty record and a warning."""
        with capture_logs() as logs:
            assert parse_address("<<broken") == {}

        assert logs[-1]["event"] == "unknown_address_format"
        assert logs[-1]["log_level"] == "warning"

    @pytest.mark.parametrize(
        "text",
        ["", " ", "<>", '"', '"a, b"', "a, b, c", "(comment only)", "@", "=?utf-8?B?@@@?="],
    )
    def test_never_raises(self, text):
        """Test any input yields a record (possibly empty)."""
        assert isinstance(parse_address(text), dict)


class TestParseAddressList:
    """Test comma-separated address lists."""

    def test_mixed_list(self):
        """Test quoted names may contain commas."""
        result = parse_address_list('Jane Roe <jane@bar.com>, "Smith, Anna" <anna@bar.com>, bob@baz.org')

        assert len(result) == 3
        assert result[0] == {"full name": "Jane Roe", "email": "jane@bar.com"}
        assert result[1]["last name"] == "Smith"
        assert result[1]["first name"] == "Anna"
        assert result[2] == {"email": "bob@baz.org"}

    def test_escaped_quotes_restored(self):
        """Test escaped quotation marks survive splitting."""
        result = parse_address_list('Jane \\"JR\\" Roe <jane@bar.com>')

        assert result == [{"full name": 'Jane "JR" Roe', "email": "jane@bar.com"}]

    def test_single_entry(self):
        """Test a list with one address."""
        assert parse_address_list("team@bar.com") == [{"email": "team@bar.com"}]

    def test_unparseable_list(self):
        """Test an unterminated quote stops parsing with a warning."""
        with capture_logs() as logs:
            assert parse_address_list('"unterminated <a@b.c>') == []

        assert "unknown_address_list_format" in [log["event"] for log in logs]
