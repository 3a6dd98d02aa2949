"""Exception hierarchy for ``statement_parser``.

The parsing core never raises for malformed statement text; these exceptions
cover programming errors (amount ownership), invalid configuration and the
OCR collaborators that run before the core.
"""

from __future__ import annotations

from collections.abc import Sequence


class StatementParserError(Exception):
    """Base exception for all package errors."""


class AmountAlreadyClaimedError(StatementParserError):
    """Raised when an amount candidate is claimed by a second merchant."""

    def __init__(self, line_index: int, owner: object, claimant: object) -> None:
        self.line_index = line_index
        self.owner = owner
        self.claimant = claimant
        super().__init__(
            f"amount on line {line_index} is already claimed by {owner!r}; "
            f"refusing claim by {claimant!r}"
        )


class SettingsError(StatementParserError):
    """Raised when a settings file cannot be read or fails validation."""


class LearningStoreError(StatementParserError):
    """Raised when the category learning file is unreadable or malformed."""


class OcrError(StatementParserError):
    """A single OCR provider failed to return text for an image."""

    def __init__(self, message: str, *, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(f"{provider}: {message}" if provider else message)


class OcrUnavailableError(OcrError):
    """Every configured OCR provider failed (or none was configured)."""

    def __init__(self, failures: Sequence[OcrError]) -> None:
        self.failures = tuple(failures)
        if self.failures:
            detail = "; ".join(str(f) for f in self.failures)
            message = f"all OCR providers failed ({detail})"
        else:
            message = "no OCR provider is configured"
        super().__init__(message)


__all__ = [
    "StatementParserError",
    "AmountAlreadyClaimedError",
    "SettingsError",
    "LearningStoreError",
    "OcrError",
    "OcrUnavailableError",
]
