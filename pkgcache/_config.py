from __future__ import annotations

import logging
import os
import typing as tp
from dataclasses import dataclass, fields

from pkgcache._utils import parse_bool

__all__ = ("GlobalConfig", "global_config")

logger = logging.getLogger("pkgcache.config")

ENV_PREFIX = "PKGCACHE_"


@dataclass
class GlobalConfig:
    """
    Process-wide settings shared by every cache provider.

    The embedding application owns this object. Providers only read it, once per
    policy evaluation, and pass the values on explicitly.
    """

    cache_private_packages: bool = False
    """
    When True, responses marked ``Cache-Control: private`` are stored anyway.
    Meant for trusted deployments where the cache is not shared between users.
    """

    def set(self, **options: tp.Any) -> None:
        known = {f.name for f in fields(self)}
        for name, value in options.items():
            if name not in known:
                raise TypeError(f"Unknown global option: {name!r}")
            setattr(self, name, value)

    def reset(self) -> None:
        for f in fields(self):
            setattr(self, f.name, f.default)

    @classmethod
    def from_env(cls, environ: tp.Optional[tp.Mapping[str, str]] = None) -> "GlobalConfig":
        """
        Build settings from ``PKGCACHE_*`` environment variables.

        Boolean values accept ``1/true/yes/on`` and ``0/false/no/off``. Unrecognized
        spellings are ignored and the default is kept.
        """
        environ = os.environ if environ is None else environ
        config = cls()
        for f in fields(config):
            env_name = ENV_PREFIX + f.name.upper()
            if env_name not in environ:
                continue
            value = parse_bool(environ[env_name])
            if value is None:
                logger.warning(f"Ignoring {env_name}={environ[env_name]!r}, expected a boolean")
                continue
            setattr(config, f.name, value)
        return config


global_config = GlobalConfig.from_env()
