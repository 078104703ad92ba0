"""Features: named units of functionality that can be enabled and disabled."""

import threading
from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from feature_gate.domain.exceptions import DuplicateFeatureError, InvalidMatcherError
from feature_gate.observability.metrics import FeatureMetrics, get_feature_metrics

from .context import EvaluationContext
from .matchers import Matcher, any_match

logger = structlog.get_logger()


class FeatureRegistry:
    """Thread-safe set of registered feature names.

    Names are unique case-insensitively for the lifetime of the registry.
    """

    def __init__(self) -> None:
        self._names: set[str] = set()
        self._lock = threading.Lock()

    def register(self, name: str) -> None:
        """Claim a name, raising DuplicateFeatureError if it is taken."""
        folded = name.lower()
        with self._lock:
            if folded in self._names:
                raise DuplicateFeatureError(name)
            self._names.add(folded)
        logger.debug("Registered feature", feature=name)

    def contains(self, name: str) -> bool:
        """Check whether a name is registered."""
        with self._lock:
            return name.lower() in self._names

    def names(self) -> frozenset[str]:
        """Snapshot of registered (case-folded) names."""
        with self._lock:
            return frozenset(self._names)

    def __len__(self) -> int:
        with self._lock:
            return len(self._names)

    def __bool__(self) -> bool:
        return True


# Global feature registry, created once and never reset
_feature_registry: FeatureRegistry | None = None
_feature_registry_lock = threading.Lock()


def get_feature_registry() -> FeatureRegistry:
    """Get the process-wide feature registry."""
    global _feature_registry
    with _feature_registry_lock:
        if _feature_registry is None:
            _feature_registry = FeatureRegistry()
        return _feature_registry


@dataclass(frozen=True)
class KillswitchOverride:
    """Feature option overriding an active killswitch by level."""

    level: int


def with_killswitch_override(level: int) -> KillswitchOverride:
    """Override an active killswitch for this feature by level.

    The override is active when ``level`` is greater than the level stored in
    the killswitch. This allows a feature to be re-enabled by a later release
    after being disabled at runtime.
    """
    return KillswitchOverride(int(level))


class Feature:
    """A named feature whose enablement is decided per evaluation."""

    __slots__ = ("_name", "_matchers", "_killswitch_override", "_metrics")

    def __init__(
        self,
        name: str,
        matchers: Iterable[Matcher] = (),
        killswitch_override: int = 0,
        registry: FeatureRegistry | None = None,
        metrics: FeatureMetrics | None = None,
    ):
        """Register and build a feature.

        Args:
            name: Unique (case-insensitive) feature name
            matchers: Top-level matchers, combined with OR
            killswitch_override: Level that must exceed a killswitch's level to bypass it
            registry: Registry to claim the name in; defaults to the process registry
            metrics: Metrics sink; defaults to the global one

        Raises:
            DuplicateFeatureError: If the name is already registered
        """
        matchers = tuple(matchers)
        for m in matchers:
            if not isinstance(m, Matcher):
                raise InvalidMatcherError("feature matchers must be Matcher instances", m)

        if registry is None:
            registry = get_feature_registry()
        registry.register(name)

        self._name = name
        self._matchers = matchers
        self._killswitch_override = int(killswitch_override)
        self._metrics = metrics

    @property
    def name(self) -> str:
        return self._name

    @property
    def matchers(self) -> tuple[Matcher, ...]:
        return self._matchers

    @property
    def killswitch_override(self) -> int:
        return self._killswitch_override

    @property
    def metrics(self) -> FeatureMetrics:
        if self._metrics is None:
            return get_feature_metrics()
        return self._metrics

    def enabled(self, ctx: EvaluationContext) -> bool:
        """Return True if the feature should be enabled given the context.

        Precedence: killswitch, per-feature override, global override, then
        matchers. The observer, if any, sees the final result exactly once.
        """
        state = False
        try:
            state = self._evaluate(ctx)
        finally:
            self._notify(ctx, state)
        return state

    def _notify(self, ctx: EvaluationContext, state: bool) -> None:
        observer = ctx.observer
        if observer is None:
            return
        try:
            observer(ctx, self._name, state)
        except Exception as e:
            logger.warning(
                "Feature observer failed", feature=self._name, error=str(e)
            )

    def _evaluate(self, ctx: EvaluationContext) -> bool:
        if self._killed(ctx):
            self.metrics.record_killswitch(self._name)
            return False

        override = ctx.feature_override(self._name)
        if override is not None:
            return override

        override = ctx.global_override
        if override is not None:
            return override

        if any_match(self._matchers, ctx):
            self.metrics.record_enabled(self._name)
            return True
        return False

    def _killed(self, ctx: EvaluationContext) -> bool:
        killswitch = ctx.killswitch
        if killswitch is None:
            return False
        level = killswitch.get(self._name)
        if level is None:
            return False
        return not self._killswitch_override > level

    def __repr__(self) -> str:
        return f"Feature(name={self._name!r}, matchers={len(self._matchers)})"


def new_feature(
    name: str,
    *options: Matcher | KillswitchOverride,
    registry: FeatureRegistry | None = None,
    metrics: FeatureMetrics | None = None,
) -> Feature:
    """Allocate a new Feature from matcher and killswitch override options."""
    matchers: list[Matcher] = []
    level = 0
    for opt in options:
        if isinstance(opt, KillswitchOverride):
            level = opt.level
        else:
            matchers.append(opt)
    return Feature(
        name,
        matchers,
        killswitch_override=level,
        registry=registry,
        metrics=metrics,
    )
