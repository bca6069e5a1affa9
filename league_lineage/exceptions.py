from typing import Optional


class LineageError(Exception):
    """Base class for errors raised by this package."""


class UpstreamUnavailable(LineageError):
    """A collaborator fetch (Sleeper API, manual trade ledger) failed."""

    def __init__(self, source: str, cause: Optional[Exception] = None):
        self.source = source
        self.cause = cause
        message = f"{source} unavailable"
        if cause is not None:
            message = f"{message}: {cause!r}"
        super().__init__(message)


class InvalidManualTrade(LineageError, ValueError):
    """A manual trade payload failed validation."""
