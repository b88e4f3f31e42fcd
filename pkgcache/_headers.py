from __future__ import annotations

import typing as tp

__all__ = ("Headers", "iter_directives", "has_private_directive")

# RFC 7230 separators; a directive name runs until one of these.
_SEPARATORS = frozenset('()<>@,;:\\"/[]?={} \t')
_WHITESPACE = " \t"


class Headers(tp.Mapping[str, str]):
    """Read-only view over a header mapping with case-insensitive lookup."""

    def __init__(self, headers: tp.Optional[tp.Mapping[str, str]] = None) -> None:
        self._headers = {key.lower(): value for key, value in (headers or {}).items()}

    def __getitem__(self, key: str) -> str:
        return self._headers[key.lower()]

    def __iter__(self) -> tp.Iterator[str]:
        return iter(self._headers)

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return f"Headers({self._headers!r})"


def _read_quoted(value: str, start: int) -> tp.Tuple[str, int]:
    """
    Unquote the quoted-string whose opening quote sits at ``start``.

    Returns the unquoted text and the index just past the closing quote. An
    unterminated string swallows the rest of the value.
    """
    chars: tp.List[str] = []
    i = start + 1
    while i < len(value):
        char = value[i]
        if char == '"':
            return "".join(chars), i + 1
        if char == "\\" and i + 1 < len(value):
            i += 1
            char = value[i]
        chars.append(char)
        i += 1
    return "".join(chars), i


def _skip_whitespace(value: str, i: int) -> int:
    while i < len(value) and value[i] in _WHITESPACE:
        i += 1
    return i


def iter_directives(value: str) -> tp.Iterator[tp.Tuple[str, tp.Optional[str]]]:
    """
    Yield ``(name, argument)`` pairs from a Cache-Control header value.

    Names are lower-cased and ``argument`` is None for bare directives. Quoted
    arguments are unquoted, so commas or directive names inside them never start a
    new directive. Stray separators are skipped.

    Examples:
        >>> list(iter_directives('max-age=180, private="Set-Cookie"'))
        [('max-age', '180'), ('private', 'Set-Cookie')]
    """
    i = 0
    length = len(value)

    while i < length:
        char = value[i]
        if char == '"':
            _, i = _read_quoted(value, i)
            continue
        if char in _SEPARATORS:
            i += 1
            continue

        start = i
        while i < length and value[i] not in _SEPARATORS:
            i += 1
        name = value[start:i].lower()

        i = _skip_whitespace(value, i)
        if i >= length or value[i] != "=":
            yield name, None
            continue

        i = _skip_whitespace(value, i + 1)
        if i < length and value[i] == '"':
            argument, i = _read_quoted(value, i)
        else:
            start = i
            while i < length and value[i] not in ", \t":
                i += 1
            argument = value[start:i]
        yield name, argument


def has_private_directive(cache_control: tp.Optional[str]) -> bool:
    """
    Tell whether a Cache-Control value carries ``private``.

    Both the bare form and the field-name form (``private="Set-Cookie"``) count.

    Examples:
        >>> has_private_directive("max-age=180, private")
        True
        >>> has_private_directive('community="private"')
        False
    """
    if not cache_control:
        return False
    return any(name == "private" for name, _ in iter_directives(cache_control))
