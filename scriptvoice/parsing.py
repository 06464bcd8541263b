"""Shared parsing helpers for runtime configuration value normalization."""

from __future__ import annotations

import json
import re


_KEY_LIST_SEPARATOR_RE = re.compile(r"[,\n;]+")


def normalize_optional_string(value: object) -> str | None:
    """Normalize an optional value to a stripped non-empty string.

    Args:
        value: Arbitrary input value.

    Returns:
        Stripped string value, or `None` when the value is empty after trimming.
    """

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text


def normalize_key_list(values: object) -> list[str]:
    """Trim API key entries, drop blanks, and keep the given order.

    Accepts a list/tuple of values or a single string separated by commas,
    semicolons, or newlines.
    """

    if values is None:
        return []
    if isinstance(values, str):
        raw_items: list[object] = list(_KEY_LIST_SEPARATOR_RE.split(values))
    elif isinstance(values, list | tuple):
        raw_items = list(values)
    else:
        raw_items = [values]

    normalized: list[str] = []
    for item in raw_items:
        key = normalize_optional_string(item)
        if key is not None:
            normalized.append(key)
    return normalized


def parse_stored_key_list(raw: str | None) -> list[str]:
    """Parse a stored key list payload.

    The current format is a JSON array of strings. A legacy value holding one plain
    key string (or any non-array JSON) is read as a single-key list.
    """

    if raw is None:
        return []
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        return normalize_key_list([raw])
    if isinstance(payload, list):
        return normalize_key_list(payload)
    return normalize_key_list([raw])
