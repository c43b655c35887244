"""Tests for the import log."""

import json

from mailingest.models.email_message import EmailMessage, SourceLocation
from mailingest.storage.import_log import ImportLog


def _message(error=None):
    message = EmailMessage(SourceLocation("inbox.mbox", 12))
    message.fields["Message-Id"] = {"raw": "<x@y.z>", "id": "x@y.z"}
    message.parts.add_part(b"text\n", "text/plain", {})
    if error:
        message.set_diagnostic(error, 15)
    return message


class TestImportLog:
    """Test ImportLog."""

    def test_imported_event(self, tmp_path):
        """Test a successful message is logged as imported."""
        log = ImportLog(tmp_path / "logs" / "import.log")

        log.log_message(_message(), "mbox")

        (event,) = log.read_events()
        assert event["event_type"] == "message_imported"
        assert event["file_path"] == "inbox.mbox"
        assert event["start_line"] == 12
        assert event["archive_format"] == "mbox"
        assert event["message_id"] == "x@y.z"
        assert event["number_of_parts"] == 1
        assert "error" not in event

    def test_failed_event(self, tmp_path):
        """Test a message with diagnostic is logged as failed."""
        log = ImportLog(tmp_path / "import.log")

        log.log_message(_message("Error in email header: no date specified."), "single")

        (event,) = log.read_events()
        assert event["event_type"] == "message_failed"
        assert event["error"] == "Error in email header: no date specified."
        assert event["error_line"] == 15

    def test_skips_broken_lines(self, tmp_path):
        """Test unreadable lines are ignored."""
        log_path = tmp_path / "import.log"
        log_path.write_text('{"event_type": "message_imported"}\nnot json\n\n')

        assert ImportLog(log_path).read_events() == [{"event_type": "message_imported"}]

    def test_export(self, tmp_path):
        """Test exporting all events as a JSON array."""
        log = ImportLog(tmp_path / "import.log")
        log.log_message(_message(), "single")
        log.log_message(_message("broken"), "single")
        output = tmp_path / "out" / "events.json"

        count = log.export(output)

        assert count == 2
        events = json.loads(output.read_text(encoding="utf-8"))
        assert [e["event_type"] for e in events] == ["message_imported", "message_failed"]
