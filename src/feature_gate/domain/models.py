"""Domain value types shared across the feature gate."""

from enum import Enum

# Killswitch level for records without an explicit level; no feature override exceeds it.
MAX_LEVEL = 2**63 - 1


class ErrorCode(str, Enum):
    """Standardized error codes."""

    DUPLICATE_FEATURE = "duplicate_feature"
    INVALID_MATCHER = "invalid_matcher"
    KILLSWITCH_FETCH_ERROR = "killswitch_fetch_error"
    KILLSWITCH_ERROR = "killswitch_error"
    INTERNAL_ERROR = "internal_error"


class KillswitchBackend(str, Enum):
    """Supported killswitch sources."""

    NONE = "none"
    FILE = "file"
    BLOB = "blob"
