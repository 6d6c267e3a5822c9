"""Error taxonomy for analysis failures.

Every fatal condition raised by the fetcher, the AI client or the
orchestrator is an ``AnalysisError`` carrying a message that can be shown
to the user as-is. Degraded (non-fatal) conditions are never raised; see
``DegradedNote`` in the orchestrator.
"""

from __future__ import annotations


class AnalysisError(Exception):
    """Base class for failures that abort an analysis."""

    default_message = "Analysis failed."

    def __init__(self, message: str | None = None, *, detail: str = ""):
        self.user_message = message or self.default_message
        self.detail = detail
        super().__init__(self.user_message)


class InvalidInput(AnalysisError):
    default_message = "Invalid URL. Please enter a valid GitHub URL."


class NotFound(AnalysisError):
    default_message = "Not found on GitHub. Check the URL or whether it is private."


class RateLimited(AnalysisError):
    default_message = "Rate limit exceeded. Check your API token or try again later."


class NetworkFailure(AnalysisError):
    default_message = "Could not reach the upstream service."


class Malformed(AnalysisError):
    default_message = "The upstream service returned an unexpected response."


class AIUnavailable(AnalysisError):
    default_message = (
        "AI analysis failed. The model may be temporarily unavailable "
        "or returned an unexpected response."
    )


class NoRepresentativeFiles(AnalysisError):
    default_message = (
        "Could not find any representative source code files to analyze "
        "in this repository."
    )
