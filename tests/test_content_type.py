"""Tests for message Content-Type interpretation."""

import pytest
from structlog.testing import capture_logs

from mailingest.services.email_parser.base import FatalParseError
from mailingest.services.email_parser.content_type import parse_content_type


class TestParseContentType:
    """Test Content-Type header values."""

    def test_multipart_with_quoted_boundary(self):
        """Test the boundary parameter of a multipart type."""
        assert parse_content_type('multipart/mixed; boundary="XYZ"') == {
            "raw": 'multipart/mixed; boundary="XYZ"',
            "type": "multipart/mixed",
            "boundary": "XYZ",
        }

    def test_alternate_is_alternative(self):
        """Test the misspelled multipart/alternate type."""
        result = parse_content_type("multipart/alternate; boundary=abc")

        assert result["type"] == "multipart/alternative"
        assert result["boundary"] == "abc"

    def test_text_with_charset_and_format(self):
        """Test charset and format values are lower-cased."""
        result = parse_content_type("text/plain; charset=ISO-8859-1; format=flowed")

        assert result["charset"] == "iso-8859-1"
        assert result["format"] == "flowed"

    def test_quoted_charset(self):
        """Test a quoted charset value."""
        assert parse_content_type('text/html; charset="utf-8"')["charset"] == "utf-8"

    def test_type_case_insensitive(self):
        """Test upper-case types are recognized."""
        assert parse_content_type("TEXT/HTML")["type"] == "text/html"

    def test_delsp(self):
        """Test delsp is kept for text/plain."""
        result = parse_content_type("text/plain; delsp=yes; format=flowed")

        assert result["delsp"] == "yes"
        assert result["format"] == "flowed"

    def test_calendar_cancel(self):
        """Test the CANCEL method of calendar bodies."""
        assert parse_content_type('text/calendar; method="CANCEL"')["method"] == "cancel"

    def test_calendar_other_method_logged(self):
        """Test other calendar methods are dropped with a warning."""
        with capture_logs() as logs:
            result = parse_content_type("text/calendar; method=REQUEST")

        assert "method" not in result
        assert logs[0]["event"] == "invalid_calendar_method"

    def test_residual_parameters_logged(self):
        """Test unrecognized parameters are reported."""
        with capture_logs() as logs:
            parse_content_type("text/plain; foo=bar")

        assert logs[0]["event"] == "residual_content_type_information"
        assert logs[0]["residual"] == "foo=bar"

    def test_unknown_type_is_fatal(self):
        """Test a type outside the known message types fails the message."""
        with pytest.raises(FatalParseError, match="Unknown content type"):
            parse_content_type("application/x-foo")

    def test_multipart_without_boundary_is_fatal(self):
        """Test multipart types need a boundary."""
        with pytest.raises(FatalParseError, match="Unknown boundary"):
            parse_content_type("multipart/mixed; charset=utf-8")


class TestContentTypeParameters:
    """Test each stripped Content-Type parameter."""

    def test_report_type(self):
        """Test report-type of multipart/report."""
        with capture_logs() as logs:
            result = parse_content_type('multipart/report; report-type=delivery-status; boundary="b1"')

        assert result["report-type"] == "delivery-status"
        assert result["boundary"] == "b1"
        assert logs == []

    def test_quoted_report_type(self):
        """Test a quoted report-type value."""
        result = parse_content_type('multipart/report; report-type="disposition-notification"; boundary="b2"')

        assert result["report-type"] == "disposition-notification"

    def test_reply_type(self):
        """Test reply-type next to charset and format."""
        with capture_logs() as logs:
            result = parse_content_type('text/plain; format=flowed; charset="utf-8"; reply-type=original')

        assert result["reply-type"] == "original"
        assert result["charset"] == "utf-8"
        assert result["format"] == "flowed"
        assert logs == []

    def test_protocol_and_micalg(self):
        """Test protocol and micalg of signed messages."""
        with capture_logs() as logs:
            result = parse_content_type(
                'multipart/signed; micalg=pgp-sha256; protocol="application/pgp-signature"; boundary="abc"'
            )

        assert result == {
            "raw": 'multipart/signed; micalg=pgp-sha256; protocol="application/pgp-signature"; boundary="abc"',
            "type": "multipart/signed",
            "boundary": "abc",
            "protocol": "application/pgp-signature",
            "micalg": "pgp-sha256",
        }
        assert logs == []

    def test_protocol_before_micalg(self):
        """Test the other parameter order."""
        result = parse_content_type(
            'multipart/signed; protocol="application/pkcs7-signature"; micalg=sha-256; boundary="s1"'
        )

        assert result["protocol"] == "application/pkcs7-signature"
        assert result["micalg"] == "sha-256"

    def test_mac_type_and_creator(self):
        """Test the classic Mac OS file type and creator codes."""
        with capture_logs() as logs:
            result = parse_content_type(
                'application/x-macbinary; x-mac-type="54455854"; x-mac-creator="4D535744"; name="Report.TXT"'
            )

        assert result["x-mac-type"] == "54455854"
        assert result["x-mac-creator"] == "4D535744"
        assert result["name"] == "report.txt"
        assert logs == []

    def test_action(self):
        """Test x-action is kept."""
        result = parse_content_type("text/plain; x-action=pgp-signed; charset=us-ascii")

        assert result["x-action"] == "pgp-signed"
        assert result["charset"] == "us-ascii"

    def test_unix_mode(self):
        """Test x-unix-mode is kept as written."""
        result = parse_content_type("application/x-macbinary; x-unix-mode=0644; name=notes.bin")

        assert result["x-unix-mode"] == "0644"
        assert result["name"] == "notes.bin"

    def test_name_lower_cased(self):
        """Test the name parameter is lower-cased."""
        assert parse_content_type('image/jpeg; name="Photo.JPG"')["name"] == "photo.jpg"

    def test_redundant_type_dropped(self):
        """Test a type parameter ahead of the boundary leaves nothing behind."""
        with capture_logs() as logs:
            result = parse_content_type('multipart/related; type="text/html"; boundary="rel"')

        assert result == {
            "raw": 'multipart/related; type="text/html"; boundary="rel"',
            "type": "multipart/related",
            "boundary": "rel",
        }
        assert logs == []
