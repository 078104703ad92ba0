"""Exception hierarchy for the feature gate."""

from typing import Any

from .models import ErrorCode


class FeatureGateException(Exception):
    """Base exception for the feature gate."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "code": self.error_code.value,
            "message": str(self),
            "details": self.details,
        }


class DuplicateFeatureError(FeatureGateException):
    """A feature name collides case-insensitively with a registered one.

    This is a programming error: two features sharing a name would fight over
    one rollout. It is raised at construction time and should not be caught.
    """

    def __init__(self, name: str):
        super().__init__(
            f"a feature with the name {name!r} already exists",
            ErrorCode.DUPLICATE_FEATURE,
            {"feature": name},
        )
        self.name = name


class InvalidMatcherError(FeatureGateException):
    """Matcher definition could not be built."""

    def __init__(self, message: str, definition: Any = None):
        super().__init__(
            message, ErrorCode.INVALID_MATCHER, {"definition": repr(definition)}
        )


class KillswitchError(FeatureGateException):
    """Base exception for killswitch sources."""

    def __init__(
        self,
        message: str,
        source: str,
        error_code: ErrorCode = ErrorCode.KILLSWITCH_ERROR,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, error_code, {"source": source, **(details or {})})
        self.source = source


class KillswitchFetchError(KillswitchError):
    """Reading the killswitch source failed.

    The underlying error is chained as ``__cause__``.
    """

    def __init__(self, source: str, reason: str):
        super().__init__(
            f"getting killswitch data from {source}: {reason}",
            source,
            ErrorCode.KILLSWITCH_FETCH_ERROR,
            {"reason": reason},
        )
        self.reason = reason
