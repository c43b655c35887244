"""Configuration models for the message importer."""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class LimitsConfig(BaseModel):
    """Resource limits applied before a file is read."""

    max_file_size_mb: int = 200

    @field_validator("max_file_size_mb")
    def validate_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_file_size_mb must be positive")
        return v


class ParsingConfig(BaseModel):
    """Options of the message parser."""

    default_content_type: str = "text/plain"
    parse_archive_metadata: bool = True

    @field_validator("default_content_type")
    def validate_content_type(cls, v: str) -> str:
        if "/" not in v:
            raise ValueError("default_content_type must look like type/subtype")
        return v.lower()


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    json_output: bool = False
    import_log_path: str = "~/.mailingest/logs/import.log"

    @field_validator("level")
    def validate_level(cls, v: str) -> str:
        if v.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return v.upper()

    def get_import_log_path(self) -> Path:
        """Get expanded import log path."""
        return Path(self.import_log_path).expanduser()


class AppConfig(BaseModel):
    """Main application configuration."""

    schema_version: str = "1.0"
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    parsing: ParsingConfig = Field(default_factory=ParsingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("schema_version")
    def validate_schema_version(cls, v: str) -> str:
        if not v:
            raise ValueError("schema_version is required")
        return v

    def max_file_size_bytes(self) -> int:
        """Largest accepted input file in bytes."""
        return self.limits.max_file_size_mb * 1024 * 1024
