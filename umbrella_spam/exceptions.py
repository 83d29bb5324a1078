"""Exception hierarchy for the spam scoring service."""

from __future__ import annotations


class SpamScoringError(Exception):
    """Base class for all errors raised by umbrella_spam."""


class DatasetNotFoundError(SpamScoringError):
    """No language dataset is available for the requested code."""

    def __init__(self, code: str) -> None:
        super().__init__(f"No language dataset for {code!r}")
        self.code = code


class EmailParseError(SpamScoringError):
    """A raw RFC 822 message could not be decoded into an EmailRecord."""


class BatchTooLargeError(SpamScoringError):
    """A batch request exceeds the configured item limit."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"Maximum {limit} emails per batch (got {size})")
        self.size = size
        self.limit = limit
