"""Domain layer: error types and shared constants."""

from .exceptions import (
    DuplicateFeatureError,
    FeatureGateException,
    InvalidMatcherError,
    KillswitchError,
    KillswitchFetchError,
)
from .models import MAX_LEVEL, ErrorCode, KillswitchBackend

__all__ = [
    "DuplicateFeatureError",
    "ErrorCode",
    "FeatureGateException",
    "InvalidMatcherError",
    "KillswitchBackend",
    "KillswitchError",
    "KillswitchFetchError",
    "MAX_LEVEL",
]
