"""Exceptions raised by the moderation package."""


class ModerationError(Exception):
    """Base class for moderation failures."""


class LedgerError(ModerationError):
    """The violation ledger could not be read or written."""


class ViolationNotFound(ModerationError):
    """No violation exists with the requested id."""

    def __init__(self, violation_id: str) -> None:
        super().__init__(f"Violation not found: {violation_id}")
        self.violation_id = violation_id


class ConfigError(ModerationError):
    """A configuration or lexicon file is missing or malformed."""
