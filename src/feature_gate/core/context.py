"""Evaluation context carried through a call chain.

An :class:`EvaluationContext` is an immutable stack of layers. Each ``with_*``
call returns a new layer that shadows the layers beneath it for the slots it
sets; lookups walk from the innermost layer outwards. Process-wide values are
set once on a base context at startup and requests add their own layers on
top, so a base context can be shared freely between threads and tasks.
"""

import contextvars
from collections.abc import Callable, Iterator, Mapping
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from feature_gate.core.feature import Feature
    from feature_gate.killswitch.base import Killswitch

Key = str

ObserverFunc = Callable[["EvaluationContext", str, bool], None]

_UNSET: Any = object()


def _fold(name: str) -> str:
    return name.lower()


class EvaluationContext:
    """Immutable, layered carrier of values, overrides, observer and killswitch."""

    __slots__ = (
        "_parent",
        "_values",
        "_feature_overrides",
        "_global_override",
        "_observer",
        "_killswitch",
    )

    def __init__(
        self,
        parent: Optional["EvaluationContext"] = None,
        *,
        values: Mapping[Key, str] | None = None,
        feature_overrides: Mapping[str, bool] | None = None,
        global_override: bool | None = _UNSET,
        observer: ObserverFunc | None = _UNSET,
        killswitch: Optional["Killswitch"] = _UNSET,
    ):
        self._parent = parent
        self._values = {_fold(k): v for k, v in (values or {}).items()}
        self._feature_overrides = {
            _fold(k): bool(v) for k, v in (feature_overrides or {}).items()
        }
        self._global_override = global_override
        self._observer = observer
        self._killswitch = killswitch

    @classmethod
    def background(cls) -> "EvaluationContext":
        """Return an empty root context."""
        return cls()

    def _layers(self) -> Iterator["EvaluationContext"]:
        layer: EvaluationContext | None = self
        while layer is not None:
            yield layer
            layer = layer._parent

    def _lookup(self, slot: str) -> Any:
        for layer in self._layers():
            value = getattr(layer, slot)
            if value is not _UNSET:
                return value
        return None

    # Values

    def with_value(self, key: Key, value: str) -> "EvaluationContext":
        """Add a string value for use with matchers. Keys are case-insensitive."""
        return EvaluationContext(self, values={key: value})

    def with_values(self, values: Mapping[Key, str]) -> "EvaluationContext":
        """Add several values in a single layer."""
        return EvaluationContext(self, values=values)

    def value(self, key: Key) -> str:
        """Look up a value; an absent key reads as the empty string."""
        folded = _fold(key)
        for layer in self._layers():
            if folded in layer._values:
                return layer._values[folded]
        return ""

    # Overrides

    def with_feature_override(
        self, feature: "Feature | str", enabled: bool
    ) -> "EvaluationContext":
        """Force the given feature to be either enabled or disabled. Useful in tests."""
        name = feature if isinstance(feature, str) else feature.name
        return EvaluationContext(self, feature_overrides={name: enabled})

    def with_override_string(self, prefix: str, overrides: str) -> "EvaluationContext":
        """Force-enable a comma-separated list of features.

        ``prefix`` is removed from the front of each item, so a flag value like
        ``"ff-checkout,ff-search"`` with prefix ``"ff-"`` enables ``checkout``
        and ``search``.
        """
        names: dict[str, bool] = {}
        for chunk in overrides.split(","):
            chunk = chunk.strip()
            if prefix and chunk.startswith(prefix):
                chunk = chunk[len(prefix) :]
            if chunk:
                names[chunk] = True
        if not names:
            return self
        return EvaluationContext(self, feature_overrides=names)

    def feature_override(self, name: str) -> bool | None:
        """Return the forced state for a feature, or None when not overridden."""
        folded = _fold(name)
        for layer in self._layers():
            if folded in layer._feature_overrides:
                return layer._feature_overrides[folded]
        return None

    def with_global_override(self, enabled: bool) -> "EvaluationContext":
        """Force all features to be either enabled or disabled. Useful in tests."""
        return EvaluationContext(self, global_override=bool(enabled))

    @property
    def global_override(self) -> bool | None:
        """Forced state for every feature, or None."""
        return self._lookup("_global_override")  # type: ignore[no-any-return]

    # Collaborators

    def with_observer(self, observer: ObserverFunc | None) -> "EvaluationContext":
        """Register a function called every time a feature is evaluated."""
        return EvaluationContext(self, observer=observer)

    @property
    def observer(self) -> ObserverFunc | None:
        """Evaluation observer, if any."""
        return self._lookup("_observer")  # type: ignore[no-any-return]

    def with_killswitch(self, killswitch: Optional["Killswitch"]) -> "EvaluationContext":
        """Attach a killswitch consulted by every feature evaluation."""
        return EvaluationContext(self, killswitch=killswitch)

    @property
    def killswitch(self) -> Optional["Killswitch"]:
        """Attached killswitch, if any."""
        return self._lookup("_killswitch")  # type: ignore[no-any-return]

    def __repr__(self) -> str:
        depth = sum(1 for _ in self._layers())
        return f"EvaluationContext(depth={depth})"


# Context variable for the request-scoped evaluation context
current_context_var: contextvars.ContextVar[EvaluationContext | None] = (
    contextvars.ContextVar("feature_gate_context", default=None)
)


def get_current_context() -> EvaluationContext:
    """Get the bound evaluation context, or an empty one."""
    ctx = current_context_var.get()
    if ctx is None:
        return EvaluationContext.background()
    return ctx


def set_current_context(
    ctx: EvaluationContext,
) -> contextvars.Token[EvaluationContext | None]:
    """Bind an evaluation context to the current task or thread."""
    return current_context_var.set(ctx)


class FeatureContext:
    """Context manager binding an evaluation context for a block."""

    def __init__(self, ctx: EvaluationContext):
        self.ctx = ctx
        self.token: contextvars.Token[EvaluationContext | None] | None = None

    def __enter__(self) -> EvaluationContext:
        """Bind the context."""
        self.token = current_context_var.set(self.ctx)
        return self.ctx

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Restore the previously bound context."""
        if self.token:
            current_context_var.reset(self.token)
