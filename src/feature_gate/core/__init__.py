"""Feature evaluation engine: context, matchers and features."""

from .context import (
    EvaluationContext,
    FeatureContext,
    Key,
    ObserverFunc,
    get_current_context,
    set_current_context,
)
from .feature import (
    Feature,
    FeatureRegistry,
    KillswitchOverride,
    get_feature_registry,
    new_feature,
    with_killswitch_override,
)
from .matchers import (
    AllOf,
    ExactMatch,
    Matcher,
    Percentage,
    any_match,
    bucket,
    fnv1a_32,
    matcher_from_dict,
    with_and,
    with_exact_match,
    with_percentage,
)

__all__ = [
    "AllOf",
    "EvaluationContext",
    "ExactMatch",
    "Feature",
    "FeatureContext",
    "FeatureRegistry",
    "Key",
    "KillswitchOverride",
    "Matcher",
    "ObserverFunc",
    "Percentage",
    "any_match",
    "bucket",
    "fnv1a_32",
    "get_current_context",
    "get_feature_registry",
    "matcher_from_dict",
    "new_feature",
    "set_current_context",
    "with_and",
    "with_exact_match",
    "with_killswitch_override",
    "with_percentage",
]
