"""Error taxonomy for banner generation."""

from typing import Optional


class BannerError(Exception):
    """Base exception for every banner pipeline failure."""

    kind = "BannerError"


class GuildNotFoundError(BannerError):
    """The mandatory guild source could not be read."""

    kind = "GuildNotFound"


class DegradedSourceError(BannerError):
    """An optional source failed and was replaced with a placeholder.

    Never raised out of the aggregator; it only records why a placeholder
    was used.
    """

    kind = "DegradedSource"

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source} degraded: {reason}")
        self.source = source
        self.reason = reason


class AuthFailureError(BannerError):
    """Credential exchange failed or a refreshed request was still rejected."""

    kind = "AuthFailure"


class AssetResolutionError(BannerError):
    """No candidate location yielded a usable theme or default asset."""

    kind = "AssetResolutionFailed"


class CompositionError(BannerError):
    """The image could not be assembled or encoded."""

    kind = "CompositionFailed"


class BannerGenerationError(BannerError):
    """Single error surfaced to callers of the render entry point.

    Carries the kind of the originating failure; the original exception is
    chained as ``__cause__``.
    """

    def __init__(self, kind: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause

    @classmethod
    def wrap(cls, error: BaseException, default_kind: str = CompositionError.kind) -> "BannerGenerationError":
        """Wrap any exception, keeping its kind when it has one."""
        if isinstance(error, BannerGenerationError):
            return error
        kind = error.kind if isinstance(error, BannerError) else default_kind
        return cls(kind, str(error) or error.__class__.__name__, cause=error)

    def to_dict(self) -> dict:
        """JSON body for the HTTP boundary."""
        return {"message": self.message, "kind": self.kind}
