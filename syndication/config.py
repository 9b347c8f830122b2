"""Configuration management for RSS document generation."""

import os
from dataclasses import dataclass
from datetime import tzinfo

from dateutil import tz


@dataclass
class TranslatorConfig:
    """Configuration for model-to-RSS translation."""

    naive_timezone: str = "UTC"

    def get_timezone(self) -> tzinfo:
        """Resolve the zone assumed for naive datetimes.

        Raises:
            ValueError: If the zone name is unknown
        """
        zone = tz.gettz(self.naive_timezone)
        if zone is None:
            raise ValueError(f"Unknown timezone: {self.naive_timezone}")
        return zone


@dataclass
class WriterConfig:
    """Configuration for XML output."""

    pretty_print: bool = True
    indent: str = "  "
    xml_declaration: bool = True


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default

    normalized = value.strip().lower()
    if normalized in ("1", "true", "yes", "on"):
        return True
    if normalized in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value}")


class Config:
    """Main configuration manager."""

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.naive_timezone = os.getenv("RSS_NAIVE_TIMEZONE", "UTC")
        self.pretty_print = _env_flag("RSS_PRETTY_PRINT", True)
        self.xml_indent = os.getenv("RSS_XML_INDENT", "  ")
        self.xml_declaration = _env_flag("RSS_XML_DECLARATION", True)
        self.log_level = os.getenv("LOG_LEVEL", "INFO")

    def get_translator_config(self) -> TranslatorConfig:
        """Get translator configuration."""
        config = TranslatorConfig(naive_timezone=self.naive_timezone)
        # Fail early on a bad zone name instead of at first naive datetime
        config.get_timezone()
        return config

    def get_writer_config(self) -> WriterConfig:
        """Get XML writer configuration."""
        return WriterConfig(
            pretty_print=self.pretty_print,
            indent=self.xml_indent,
            xml_declaration=self.xml_declaration,
        )
