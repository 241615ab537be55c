"""Error taxonomy shared by the channel analysis pipeline."""

from __future__ import annotations


class AnalysisError(Exception):
    """Base class for failures that may surface at the request boundary."""

    public_message: str | None = None

    def __str__(self) -> str:
        return super().__str__() or (self.public_message or "")

    @property
    def message(self) -> str:
        """Return the message safe to show to the caller."""

        return self.public_message or str(self)


class InvalidQueryError(AnalysisError, ValueError):
    """Raised when the supplied channel reference is empty or unusable."""


class NotFoundError(AnalysisError, LookupError):
    """Raised when no YouTube channel matches the supplied reference."""


class UpstreamUnavailableError(AnalysisError):
    """Raised when YouTube cannot be reached, rate limits us, or times out."""

    public_message = "YouTube is not responding right now. Please try again in a moment."
