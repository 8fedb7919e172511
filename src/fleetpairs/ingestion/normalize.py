"""Normalization helpers.

Centralizes defensive parsing of vendor payloads: scalar coercion,
placeholder handling, timestamp parsing, ordered field-extraction rules
and short asset tag derivation.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from fleetpairs._constants import UNKNOWN_ASSET_ID


def safe_float(value: Any) -> float | None:
    """Coerce to a finite float, or ``None``."""
    if value is None or value == "" or value == "--" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(result):
        return None
    return result


def safe_str(value: Any) -> str | None:
    if value is None or isinstance(value, (Mapping, list, tuple)):
        return None
    text = str(value).strip()
    return text if text else None


def is_meaningful(value: Any) -> bool:
    """Return True if the value counts as present for field extraction."""
    if value is None:
        return False
    if isinstance(value, str) and value.strip() in {"", "--"}:
        return False
    if value == {}:
        return False
    return bool(value != [])


def normalize_timestamp_seconds(value: Any) -> float | None:
    """Normalize epoch timestamps to seconds.

    - Empty/missing -> None
    - <= 0 -> None
    - Milliseconds (> 1e11) -> seconds
    """
    ts = safe_float(value)
    if ts is None or ts <= 0:
        return None
    if ts > 1e11:
        ts /= 1000.0
    return ts


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an epoch number or ISO-8601 string into a UTC datetime.

    Values that do not map onto a representable UTC datetime, such as
    out-of-range epochs, yield ``None``.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = normalize_timestamp_seconds(value)
        if seconds is None:
            return None
        try:
            return datetime.fromtimestamp(seconds, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if safe_float(text) is not None:
        return parse_timestamp(float(text))
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return _as_utc(parsed)


def _as_utc(parsed: datetime) -> datetime | None:
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    try:
        return parsed.astimezone(UTC)
    except (OverflowError, ValueError):
        return None


# ---------------------------------------------------------------------------
# Ordered field extraction
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldRule:
    """A path into a nested vendor record.

    Path segments are literal keys, so keys that themselves contain dots
    (``"samsara.vin"``) are addressed as one segment.
    """

    path: tuple[str, ...]

    @classmethod
    def of(cls, *path: str) -> FieldRule:
        return cls(tuple(path))

    @property
    def name(self) -> str:
        return "/".join(self.path)

    def extract(self, record: Any) -> Any:
        current = record
        for key in self.path:
            if not isinstance(current, Mapping):
                return None
            current = current.get(key)
            if current is None:
                return None
        return current


def rules(*paths: str | tuple[str, ...]) -> tuple[FieldRule, ...]:
    """Build a priority-ordered rule tuple; plain strings are one-segment paths."""
    return tuple(FieldRule((p,)) if isinstance(p, str) else FieldRule(tuple(p)) for p in paths)


def first_match(
    record: Any,
    candidates: Iterable[FieldRule],
    parse: Callable[[Any], Any] | None = None,
) -> Any:
    """Value of the first rule that yields a meaningful value, else ``None``.

    With *parse*, a rule only wins when its value parses to something other
    than ``None``; the parsed value is returned and unusable values fall
    through to the next rule.
    """
    for rule in candidates:
        value = rule.extract(record)
        if not is_meaningful(value):
            continue
        if parse is None:
            return value
        parsed = parse(value)
        if parsed is not None:
            return parsed
    return None


def first_list(payload: Any, candidates: Iterable[FieldRule]) -> list[Any] | None:
    """First candidate path whose value is a list."""
    for rule in candidates:
        value = rule.extract(payload)
        if isinstance(value, list):
            return value
    return None


# ---------------------------------------------------------------------------
# Short asset tags
# ---------------------------------------------------------------------------

_FOUR_DIGITS = re.compile(r"(?<!\d)\d{4}(?!\d)")
_THREE_DIGITS = re.compile(r"(?<!\d)\d{3}(?!\d)")


def extract_short_tag(record: Any, candidates: Sequence[FieldRule]) -> str:
    """Derive a short human-legible tag from a vendor record.

    All candidates are scanned for an isolated 4-digit run first, in
    candidate order; only then for an isolated 3-digit run. Falls back to
    :data:`UNKNOWN_ASSET_ID`.
    """
    texts = [text for text in (safe_str(rule.extract(record)) for rule in candidates) if text]
    for pattern in (_FOUR_DIGITS, _THREE_DIGITS):
        for text in texts:
            match = pattern.search(text)
            if match:
                return match.group(0)
    return UNKNOWN_ASSET_ID
