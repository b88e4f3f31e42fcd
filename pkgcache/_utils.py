from __future__ import annotations

import typing as tp
from datetime import datetime, timezone
from pathlib import Path

import httpx

T = tp.TypeVar("T")

TRUTHY_VALUES = ("1", "true", "yes", "on")
FALSY_VALUES = ("0", "false", "no", "off")


def normalized_url(url: tp.Union[str, httpx.URL]) -> str:
    """
    Normalize a request URL so that equivalent spellings map to the same cache key.

    Scheme and host are lowercased by httpx, and the fragment is dropped since it
    never reaches the origin.

    Example:
        >>> normalized_url("HTTP://Example.com/foo/bar#readme")
        'http://example.com/foo/bar'
    """
    normalized = str(httpx.URL(url))
    return normalized.split("#", 1)[0]


def parse_bool(value: str) -> tp.Optional[bool]:
    """
    Interpret a configuration string as a boolean.

    Returns None when the value is not a recognized spelling.
    """
    value = value.strip().lower()
    if value in TRUTHY_VALUES:
        return True
    if value in FALSY_VALUES:
        return False
    return None


def format_timestamp(moment: datetime) -> str:
    """
    Format an instant as ISO-8601 in UTC with millisecond precision.

    Example:
        >>> format_timestamp(datetime(2024, 6, 15, tzinfo=timezone.utc))
        '2024-06-15T00:00:00.000Z'
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 instant. A trailing ``Z`` is accepted and naive values are taken as UTC.

    Raises ValueError when the value is not a valid ISO-8601 instant.
    """
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    moment = datetime.fromisoformat(value)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def filter_mapping(mapping: tp.Mapping[str, T], keys_to_exclude: tp.Iterable[str]) -> tp.Dict[str, T]:
    """
    Filter out specified keys from a string-keyed mapping using case-insensitive comparison.

    Example:
        >>> filter_mapping({"a": 1, "B": 2, "c": 3}, ["b"])
        {'a': 1, 'c': 3}
    """
    exclude_set = {k.lower() for k in keys_to_exclude}
    return {k: v for k, v in mapping.items() if k.lower() not in exclude_set}


def ensure_cache_dict(base_path: Path | None = None) -> Path:
    _base_path = base_path if base_path is not None else Path(".cache/pkgcache")
    _gitignore_file = _base_path / ".gitignore"

    _base_path.mkdir(parents=True, exist_ok=True)

    if not _gitignore_file.is_file():
        with open(_gitignore_file, "w", encoding="utf-8") as f:
            f.write("# Automatically created by pkgcache\n*")
    return _base_path
