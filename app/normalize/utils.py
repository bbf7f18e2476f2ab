from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from typing import Any

# Newline, comma, bullet, a dash followed by whitespace, or a middle dot.
_LIST_SPLIT_RE = re.compile(r"\r?\n|,|•|[-–—]\s|·")


def _coerce_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        # Clamp before float() so very large JSON integers cannot overflow.
        return float(max(min(value, 101), -1))
    if isinstance(value, float):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number):
        return None
    return number


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def to_percent(value: Any) -> int:
    """Map a 0-1 fraction or a 0-100 score onto an integer percentage."""
    number = _coerce_number(value)
    if number is None:
        return 0
    scaled = number * 100 if number <= 1 else min(number, 100.0)
    return _round_half_up(min(max(scaled, 0.0), 100.0))


def _item_text(item: Any) -> str | None:
    if item is None:
        return None
    if isinstance(item, str):
        return item
    return str(item)


def to_list(value: Any) -> list[str]:
    """Coerce a list-like field into an ordered list of strings.

    Sequences keep their order and their string items untouched (no trimming).
    Free text is split on common list separators, trimmed, and emptied parts
    are dropped. Anything else becomes an empty list.
    """
    if isinstance(value, str):
        parts = (part.strip() for part in _LIST_SPLIT_RE.split(value))
        return [part for part in parts if part]
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        items = (_item_text(item) for item in value)
        return [item for item in items if item is not None]
    return []


def to_text(value: Any) -> str | None:
    if value is None or isinstance(value, (bool, Mapping)):
        return None
    if isinstance(value, (list, tuple)):
        return None
    text = str(value).strip()
    return text or None


def first_present(record: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    """Return the first truthy value stored under any of ``keys``."""
    fallback = None
    for key in keys:
        if key not in record:
            continue
        value = record[key]
        if value:
            return value
        if fallback is None:
            fallback = value
    return fallback
