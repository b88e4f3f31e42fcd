import pytest

from pkgcache import Headers
from pkgcache._headers import has_private_directive, iter_directives


def test_headers_are_case_insensitive() -> None:
    headers = Headers({"ETag": "foobar", "Cache-Control": "max-age=180, public"})

    assert headers["etag"] == "foobar"
    assert headers["CACHE-CONTROL"] == "max-age=180, public"
    assert "If-None-Match" not in headers
    assert headers.get("last-modified") is None


def test_directives_are_split() -> None:
    directives = list(iter_directives('Max-Age=180, private="set-cookie, authorization", public'))

    assert directives == [
        ("max-age", "180"),
        ("private", "set-cookie, authorization"),
        ("public", None),
    ]


def test_escaped_quotes_in_arguments() -> None:
    assert list(iter_directives('community="a \\"b\\" c", private')) == [
        ("community", 'a "b" c'),
        ("private", None),
    ]


@pytest.mark.parametrize(
    "cache_control",
    [
        "private",
        "PRIVATE",
        "max-age=180, private",
        'private="Set-Cookie"',
        "private=Set-Cookie",
        ' , ;; max-age="abc", private',
    ],
)
def test_private_is_detected(cache_control: str) -> None:
    assert has_private_directive(cache_control)


@pytest.mark.parametrize(
    "cache_control",
    [
        None,
        "",
        "max-age=180, public",
        'community="private"',
        'no-cache="private, set-cookie", public',
        "private-extension",
        'community="unterminated, private',
    ],
)
def test_private_is_not_detected(cache_control) -> None:
    assert not has_private_directive(cache_control)
