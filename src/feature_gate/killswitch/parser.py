"""Killswitch source format.

One record per line, UTF-8:

    checkout-v2        disabled, cannot be overridden
    search=1           disabled unless a feature's override level exceeds 1

Names are case-insensitive. A level that does not parse is treated as
``MAX_LEVEL`` so the record can never be overridden.
"""

import hashlib

import structlog

from feature_gate.domain.models import MAX_LEVEL

logger = structlog.get_logger()


def parse_killswitch(raw: bytes) -> dict[str, int]:
    """Parse raw killswitch bytes into a map of lower-cased name to level."""
    state: dict[str, int] = {}
    for lineno, line in enumerate(raw.decode("utf-8", errors="replace").splitlines(), 1):
        line = line.strip()
        if not line:
            continue

        name, sep, level_text = line.partition("=")
        name = name.strip().lower()
        if not name:
            continue

        level = MAX_LEVEL
        if sep:
            try:
                level = int(level_text.strip())
            except ValueError:
                logger.warning(
                    "Unparsable killswitch level, treating as not overridable",
                    feature=name,
                    line=lineno,
                    level=level_text,
                )
        state[name] = level
    return state


def fingerprint(raw: bytes) -> str:
    """SHA-256 hex digest of the raw killswitch source."""
    return hashlib.sha256(raw).hexdigest()
