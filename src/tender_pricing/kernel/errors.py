"""
Custom exceptions for the tender pricing engine

Only problems that make a run impossible to start are raised: unreadable or
schema-invalid files, unknown price sources in loaded data. Everything that
goes wrong while pricing individual items is reported as a structured
warning on the run result instead.

Fun fact: Public tenders date back to at least ancient Rome, where the
censors auctioned off tax-farming and public works contracts every five years!
"""

from pathlib import Path


class TenderPricingError(Exception):
    """Base exception for all tender pricing errors"""

    pass


class ConfigurationError(TenderPricingError):
    """
    Raised when a rule configuration cannot be loaded

    Covers malformed JSON, documents that fail schema validation and flat
    rule tables with duplicate ids or parent cycles.
    Unknown condition ids and dangling action references are NOT fatal;
    they surface as warnings during evaluation.
    """

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid rule configuration {source}: {reason}")


class ConfigFileNotFound(ConfigurationError):
    """Raised when the rule configuration file does not exist"""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(str(path), "file not found")


class ItemsFileError(TenderPricingError):
    """Raised when the tender items file is missing or invalid"""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load tender items from {path}: {reason}")


class UnknownPriceSource(TenderPricingError):
    """Raised when a price source name is not one of the reference prices"""

    def __init__(self, source: str) -> None:
        self.source = source
        super().__init__(
            f"Unknown price source {source!r} - expected one of "
            "PLAN, MIN, MAX, CEILING, PREVIOUS_WINNING, FLOOR"
        )
