"""Import log recording the outcome of every imported message."""

import json
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from mailingest.models.email_message import EmailMessage


class ImportLog:
    """JSON-lines log with one event per imported message."""

    def __init__(self, log_path: Optional[Path] = None):
        """
        Initialize import log.

        Args:
            log_path: Path to log file (default: ~/.mailingest/logs/import.log)
        """
        if log_path is None:
            log_path = Path("~/.mailingest/logs/import.log").expanduser()

        self.log_path = log_path
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def log_message(self, message: EmailMessage, archive_format: str) -> None:
        """
        Log the outcome of one imported message.

        Messages carrying a diagnostic are logged as 'message_failed',
        all others as 'message_imported'.

        Args:
            message: Imported message
            archive_format: Format the message was read from
        """
        event = {
            "timestamp": datetime.now().isoformat(),
            "event_type": "message_failed" if message.has_error() else "message_imported",
            "file_path": message.get_filename(),
            "start_line": message.get_start_line_number(),
            "archive_format": archive_format,
            "message_id": message.fields.get("Message-Id", {}).get("id"),
            "number_of_parts": message.get_number_of_parts(),
        }
        if message.has_error():
            event["error"] = message.get_error()
            event["error_line"] = message.get_error_line()

        self._write_event(event)

    def iter_events(self) -> Iterator[dict]:
        """Yield logged events in logging order, skipping lines that are not JSON."""
        if not self.log_path.exists():
            return
        for line in self.log_path.read_text(encoding="utf-8").splitlines():
            if not line.strip():
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                continue

    def read_events(self) -> list[dict]:
        return list(self.iter_events())

    def export(self, output_path: Path) -> int:
        """
        Write all logged events to output_path as one JSON array.

        Returns:
            Number of exported events
        """
        events = self.read_events()
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(events, indent=2, ensure_ascii=False), encoding="utf-8")
        return len(events)

    def _write_event(self, event: dict) -> None:
        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(event, ensure_ascii=False) + "\n")
