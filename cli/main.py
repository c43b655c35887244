"""Main CLI entry point for mailingest."""

import argparse
import sys
from pathlib import Path
from typing import Optional

from mailingest.config.config_loader import ConfigError, ConfigLoader
from mailingest.services.email_parser import detect_archive_format, get_parser
from mailingest.storage.import_log import ImportLog
from mailingest.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def process_emails(
    email_paths: list[Path],
    archive_format: str = "auto",
    config_path: Optional[Path] = None,
    verbose: bool = False,
    output: Optional[Path] = None,
) -> tuple[int, int]:
    """
    Import email files and print the canonical document of every message.

    Args:
        email_paths: Files to import
        archive_format: 'auto' to detect per file, or 'single', 'mbox', 'emlx'
        config_path: Optional custom config file path
        verbose: Enable debug logging
        output: Write the documents to this file instead of stdout

    Returns:
        Tuple of (total_messages, failed_messages)
    """
    config = ConfigLoader(config_path).load_app_config()
    setup_logging(json=config.logging.json_output, level="DEBUG" if verbose else config.logging.level)

    import_log = ImportLog(config.logging.get_import_log_path())

    total_messages = 0
    failed_messages = 0
    documents = []

    for email_path in email_paths:
        file_format = detect_archive_format(email_path) if archive_format == "auto" else archive_format
        if file_format == "unknown":
            logger.error("email_file_not_found", path=str(email_path))
            failed_messages += 1
            continue

        logger.info("importing_file", path=str(email_path), archive_format=file_format)

        for message in get_parser(file_format, config).parse(email_path):
            total_messages += 1
            import_log.log_message(message, file_format)

            if message.has_error():
                failed_messages += 1
                print(
                    f"Error in {message.get_filename()} "
                    f"(message at line {message.get_start_line_number()}): {message.get_error()}",
                    file=sys.stderr,
                )

            documents.append(message.to_canonical_document())

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text("\n".join(documents) + "\n", encoding="utf-8")
    else:
        for document in documents:
            print(document)

    # Footer
    print("---", file=sys.stderr)
    print(f"Imported {total_messages} messages, {failed_messages} with errors", file=sys.stderr)

    return total_messages, failed_messages


def cmd_parse(args) -> int:
    """Parse command."""
    email_paths = [Path(p) for p in args.emails]
    _, failed = process_emails(email_paths, args.format, args.config, args.verbose, args.output)
    return 1 if failed else 0


def cmd_export_log(args) -> int:
    """Export import log command."""
    config = ConfigLoader(args.config).load_app_config()

    import_log = ImportLog(config.logging.get_import_log_path())

    output_path = Path(args.output) if args.output else Path("import_log_export.json")

    count = import_log.export(output_path)

    print(f"{count} import events exported to: {output_path}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="mailingest - Email message ingestion")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parse_parser = subparsers.add_parser("parse", help="Import emails and print their canonical documents")
    parse_parser.add_argument("emails", nargs="+", help="Email file(s) to import")
    parse_parser.add_argument(
        "--format",
        choices=["auto", "single", "mbox", "emlx"],
        default="auto",
        help="Storage format of the files (default: detect per file)",
    )
    parse_parser.add_argument("--config", type=Path, help="Custom config file path")
    parse_parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    parse_parser.add_argument("--output", type=Path, help="Write documents to this file")

    export_parser = subparsers.add_parser("export-log", help="Export the import log as JSON")
    export_parser.add_argument("--config", type=Path, help="Custom config file path")
    export_parser.add_argument("--output", type=Path, help="Output file path")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        if args.command == "parse":
            return cmd_parse(args)
        return cmd_export_log(args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
