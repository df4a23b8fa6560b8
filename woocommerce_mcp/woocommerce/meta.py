"""Pure helpers over WooCommerce ``meta_data`` sequences.

Upstream has no endpoint for a single meta entry, so writes replace the
whole sequence. These helpers compute the new sequence; they never mutate
their input and always preserve the order of untouched entries.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

MetaEntry = Dict[str, Any]


def _entries(meta_data: Optional[Sequence[Any]]) -> List[MetaEntry]:
    if not meta_data:
        return []
    return [dict(entry) for entry in meta_data if isinstance(entry, dict)]


def upsert_meta(meta_data: Optional[Sequence[Any]], key: str, value: Any) -> List[MetaEntry]:
    """Replace the value of the first entry with ``key``, or append a new entry.

    The replaced entry keeps its position and any upstream ``id``.

    >>> upsert_meta([{"key": "x", "value": 1}], "k", "v")
    [{'key': 'x', 'value': 1}, {'key': 'k', 'value': 'v'}]
    """
    result = _entries(meta_data)
    for entry in result:
        if entry.get("key") == key:
            entry["value"] = value
            return result
    result.append({"key": key, "value": value})
    return result


def remove_meta(meta_data: Optional[Sequence[Any]], key: str) -> List[MetaEntry]:
    """Drop every entry with ``key``."""
    return [entry for entry in _entries(meta_data) if entry.get("key") != key]


def filter_meta(meta_data: Optional[Sequence[Any]], key: Optional[str] = None) -> List[MetaEntry]:
    """Return the entries with ``key``, or all entries when ``key`` is empty."""
    entries = _entries(meta_data)
    if not key:
        return entries
    return [entry for entry in entries if entry.get("key") == key]
