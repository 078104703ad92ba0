"""Matcher tree: logical operations against evaluation context values.

Matchers are frozen dataclasses built once at startup and shared by every
request afterwards. Evaluation reads the context and nothing else.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from feature_gate.domain.exceptions import InvalidMatcherError

from .context import EvaluationContext, Key

FNV32_OFFSET_BASIS = 2166136261
FNV32_PRIME = 16777619


def fnv1a_32(data: bytes) -> int:
    """32-bit Fowler-Noll-Vo (FNV-1a) hash."""
    h = FNV32_OFFSET_BASIS
    for byte in data:
        h ^= byte
        h = (h * FNV32_PRIME) & 0xFFFFFFFF
    return h


def bucket(value: str) -> int:
    """Map a string into one of 100 stable buckets (0-99)."""
    return fnv1a_32(value.encode("utf-8")) % 100


class Matcher(ABC):
    """A node of the matcher tree."""

    @abstractmethod
    def evaluate(self, ctx: EvaluationContext) -> bool:
        """Return the decision for the given context."""

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""


@dataclass(frozen=True)
class ExactMatch(Matcher):
    """Matches when the context value for ``key`` equals ``value``."""

    key: Key
    value: str

    def evaluate(self, ctx: EvaluationContext) -> bool:
        return ctx.value(self.key) == self.value

    def to_dict(self) -> dict[str, Any]:
        return {"type": "exact_match", "key": self.key, "value": self.value}


@dataclass(frozen=True)
class Percentage(Matcher):
    """Matches a stable percentage of the possible values of ``key``.

    The same value always lands in the same bucket, in every process, so a
    customer enabled at 10% stays enabled when the rollout moves to 20%.
    """

    key: Key
    percent: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "percent", max(0, min(100, int(self.percent))))

    def evaluate(self, ctx: EvaluationContext) -> bool:
        return bucket(ctx.value(self.key)) < self.percent

    def to_dict(self) -> dict[str, Any]:
        return {"type": "percentage", "key": self.key, "percent": self.percent}


@dataclass(frozen=True)
class AllOf(Matcher):
    """Matches when every child matches. No children matches everything."""

    children: tuple[Matcher, ...] = field(default_factory=tuple)

    def evaluate(self, ctx: EvaluationContext) -> bool:
        return all(child.evaluate(ctx) for child in self.children)

    def to_dict(self) -> dict[str, Any]:
        return {"type": "and", "children": [c.to_dict() for c in self.children]}


def with_exact_match(key: Key, value: str) -> Matcher:
    """Enable when a string value equals the corresponding context value."""
    return ExactMatch(key, value)


def with_percentage(key: Key, percent: int) -> Matcher:
    """Enable for a percent of the possible values of a given context key.

    Uses the 32-bit FNV-1a hash of the value.
    """
    return Percentage(key, percent)


def with_and(*matchers: Matcher) -> Matcher:
    """Enable when all child matchers are positively matched."""
    for m in matchers:
        if not isinstance(m, Matcher):
            raise InvalidMatcherError("AND children must be matchers", m)
    return AllOf(tuple(matchers))


def any_match(matchers: Iterable[Matcher], ctx: EvaluationContext) -> bool:
    """Feature-level OR across top-level matchers."""
    return any(m.evaluate(ctx) for m in matchers)


def matcher_from_dict(data: dict[str, Any]) -> Matcher:
    """Create a matcher tree from :meth:`Matcher.to_dict` output."""
    if not isinstance(data, dict):
        raise InvalidMatcherError("matcher definition must be a mapping", data)

    kind = data.get("type")
    try:
        if kind == "exact_match":
            return ExactMatch(str(data["key"]), str(data["value"]))
        if kind == "percentage":
            return Percentage(str(data["key"]), int(data["percent"]))
        if kind == "and":
            children: Sequence[dict[str, Any]] = data.get("children", [])
            return AllOf(tuple(matcher_from_dict(child) for child in children))
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidMatcherError(f"invalid {kind} matcher: {e}", data) from e

    raise InvalidMatcherError(f"unknown matcher type: {kind!r}", data)
