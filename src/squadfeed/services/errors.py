"""Error taxonomy for feed fetching and optimistic mutations.

Every failure of a content-service call is normalized into one of these
kinds before it reaches the caller. ``retryable`` tells a UI whether offering
a retry makes sense.
"""

from __future__ import annotations


class ContentServiceError(RuntimeError):
    """Raised by content-service implementations when a backend call fails.

    Attributes:
        message: Human-readable description of the failure.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class FeedError(Exception):
    """Base class for errors surfaced to feed and reconciler callers."""

    retryable: bool = False

    def __init__(self, message: str, *, retryable: bool | None = None) -> None:
        super().__init__(message)
        self.message = message
        if retryable is not None:
            self.retryable = retryable


class ValidationError(FeedError):
    """A mutation was rejected before any state changed."""


class AuthenticationRequiredError(ValidationError):
    """The actor is anonymous; the caller should prompt for sign-in."""

    def __init__(self, message: str = "Please sign in to continue") -> None:
        super().__init__(message)


class TransientFetchError(FeedError):
    """A page fetch failed; previously displayed posts are untouched."""

    retryable = True


class MutationPersistError(FeedError):
    """A vote or bookmark write failed and local state was rolled back."""

    retryable = True


class StaleResponseDiscarded(FeedError):
    """A fetch completed after a newer one was issued; its result is dropped.

    Internal only: feed sessions catch this and never raise it to callers.
    """

    def __init__(self, sequence: int, latest: int) -> None:
        super().__init__(f"Discarded response #{sequence}; latest request is #{latest}")
        self.sequence = sequence
        self.latest = latest
