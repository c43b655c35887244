"""Email message ingestion: single files, mbox archives and Apple Mail .emlx files."""

from mailingest.utils.logging import configure_default_logging

__version__ = "0.1.0"

configure_default_logging()
