"""Feature gate: get features into production safely.

Features are enabled per request by matchers over context values, can be
forced on or off by overrides, and can be disabled at runtime by a polled
killswitch.
"""

from .core import (
    AllOf,
    EvaluationContext,
    ExactMatch,
    Feature,
    FeatureContext,
    FeatureRegistry,
    Key,
    Matcher,
    ObserverFunc,
    Percentage,
    get_current_context,
    get_feature_registry,
    new_feature,
    set_current_context,
    with_and,
    with_exact_match,
    with_killswitch_override,
    with_percentage,
)
from .domain import (
    MAX_LEVEL,
    DuplicateFeatureError,
    FeatureGateException,
    InvalidMatcherError,
    KillswitchError,
    KillswitchFetchError,
)
from .killswitch import (
    BlobKillswitch,
    BlobStore,
    BlobStoreFn,
    FileKillswitch,
    Killswitch,
    MemoryKillswitch,
    PollingKillswitch,
    attach_file_killswitch,
)

__version__ = "0.1.0"

__all__ = [
    "AllOf",
    "BlobKillswitch",
    "BlobStore",
    "BlobStoreFn",
    "DuplicateFeatureError",
    "EvaluationContext",
    "ExactMatch",
    "Feature",
    "FeatureContext",
    "FeatureGateException",
    "FeatureRegistry",
    "FileKillswitch",
    "InvalidMatcherError",
    "Key",
    "Killswitch",
    "KillswitchError",
    "KillswitchFetchError",
    "MAX_LEVEL",
    "Matcher",
    "MemoryKillswitch",
    "ObserverFunc",
    "Percentage",
    "PollingKillswitch",
    "attach_file_killswitch",
    "get_current_context",
    "get_feature_registry",
    "new_feature",
    "set_current_context",
    "with_and",
    "with_exact_match",
    "with_killswitch_override",
    "with_percentage",
]
