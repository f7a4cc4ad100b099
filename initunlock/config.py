"""Layer defaults, environment and command-line flags into an UnlockConfig."""

from __future__ import annotations

import os
from dataclasses import fields
from typing import Any, Mapping, Optional

from .errors import ConfigError
from .model import UnlockConfig

ENV_PREFIX = "INITUNLOCK_"

# field -> environment variable suffix
ENV_FIELDS = {
    "prefix": "PREFIX",
    "pool": "POOL",
    "key_container": "KEY_CONTAINER",
    "key_name": "KEY_NAME",
    "altroot": "ALTROOT",
    "lock_file": "LOCK_FILE",
    "resume_boot": "RESUME_BOOT",
    "snapshot_limit": "SNAPSHOT_LIMIT",
}


def _coerce(name: str, value: Any) -> Any:
    if name != "snapshot_limit" or isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"snapshot limit must be an integer, got {value!r}") from exc


def validate(cfg: UnlockConfig) -> UnlockConfig:
    if not cfg.pool:
        raise ConfigError("pool name must not be empty")
    if "/" in cfg.pool:
        raise ConfigError(f"pool name {cfg.pool!r} must not contain '/'")
    if "/" in cfg.prefix:
        raise ConfigError(f"mapper prefix {cfg.prefix!r} must not contain '/'")
    if not cfg.key_name or "/" in cfg.key_name:
        raise ConfigError(f"invalid key mapper name {cfg.key_name!r}")
    if cfg.snapshot_limit <= 0:
        raise ConfigError("snapshot limit must be positive")
    return cfg


def load_config(args: Optional[Any] = None, environ: Optional[Mapping[str, str]] = None) -> UnlockConfig:
    """Build the effective configuration.

    Precedence is command-line flag, then ``INITUNLOCK_*`` environment
    variable, then the dataclass default.  A flag counts as given when the
    parsed namespace holds something other than ``None``.
    """

    env = os.environ if environ is None else environ
    values: dict[str, Any] = {}
    for name, suffix in ENV_FIELDS.items():
        raw = env.get(ENV_PREFIX + suffix)
        if raw is not None and raw != "":
            values[name] = _coerce(name, raw)

    if args is not None:
        for f in fields(UnlockConfig):
            flag = getattr(args, f.name, None)
            if flag is not None:
                values[f.name] = _coerce(f.name, flag)

    return validate(UnlockConfig(**values))
