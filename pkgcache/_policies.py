from __future__ import annotations

import logging
import typing as tp

from pkgcache._headers import Headers, has_private_directive

__all__ = ("is_cacheable",)

logger = logging.getLogger("pkgcache.policies")


def is_cacheable(
    headers: tp.Optional[tp.Mapping[str, str]],
    check_cache_control: bool,
    cache_private_packages: bool,
) -> bool:
    """
    Decide whether a response may be persisted.

    A response is refused only when Cache-Control checking is enabled, the origin
    marked the response ``private`` and private caching was not allowed globally.
    Every other directive is ignored.

    Examples:
        >>> is_cacheable({"Cache-Control": "max-age=180, public"}, True, False)
        True
        >>> is_cacheable({"Cache-Control": "max-age=180, private"}, True, False)
        False
        >>> is_cacheable({"Cache-Control": "max-age=180, private"}, False, False)
        True
        >>> is_cacheable({"Cache-Control": "max-age=180, private"}, True, True)
        True
    """
    if not check_cache_control or cache_private_packages:
        return True

    if not headers:
        return True

    if has_private_directive(Headers(headers).get("cache-control")):
        logger.debug("Response is marked private, refusing to store it")
        return False
    return True
