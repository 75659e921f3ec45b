# src/core/errors.py — v1
"""Error taxonomy for the research pipeline.

Source-level errors never cross a component boundary: they are caught,
logged with the source identity and folded into a SourceOutcome. Only
RateLimitExceeded changes what the caller receives, and the shell turns it
into a rejection response rather than letting it propagate.
"""

from __future__ import annotations


class ResearchError(Exception):
    """Base class for all research pipeline errors."""


class SourceError(ResearchError):
    """A single source could not contribute results."""

    kind = "source_error"

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        self.message = message
        super().__init__(f"{source}: {message}")


class SourceUnavailable(SourceError):
    """Network/HTTP failure for one source."""

    kind = "unavailable"


class SourceNotConfigured(SourceUnavailable):
    """Source requires a credential that is not configured."""

    kind = "not_configured"


class FetchError(SourceUnavailable):
    """Document download failed (non-200 status, empty body, transport error)."""

    kind = "fetch_failed"

    def __init__(self, url: str, message: str, status_code: int | None = None) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(url, message)


class SourceTimeout(SourceError):
    """Source did not answer within its bounded window."""

    kind = "timeout"


class ExtractionError(SourceError):
    """Document content could not be converted to text."""

    kind = "extraction_failed"


class RateLimitExceeded(ResearchError):
    """Per-user, per-mode request budget exhausted."""

    def __init__(
        self,
        user_id: str,
        mode: str,
        limit: int,
        window: str,
        retry_after_s: float,
    ) -> None:
        self.user_id = user_id
        self.mode = mode
        self.limit = limit
        self.window = window
        self.retry_after_s = retry_after_s
        super().__init__(
            f"Rate limit exceeded for user {user_id!r} in {mode} mode "
            f"({limit} per {window}); retry in {retry_after_s:.0f}s"
        )
