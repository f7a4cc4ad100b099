from __future__ import annotations

import os
from pathlib import Path

_DEFAULT_LOG_DIR = "/run/initunlock"
FALLBACK_LOG_DIR = "/tmp/initunlock-logs"


def _expand(path: str) -> str:
    candidate = Path(path).expanduser()
    try:
        return str(candidate.resolve())
    except FileNotFoundError:
        return str(candidate)


def logs_dir() -> str:
    """Return the directory for the JSONL trace log.

    The location can be overridden via the ``INITUNLOCK_LOG_DIR`` environment
    variable.  Inside the initramfs ``/run`` is a tmpfs that survives the
    switch to the real root, so that is the default.
    """

    override = os.environ.get("INITUNLOCK_LOG_DIR")
    if override:
        return _expand(override)
    return _DEFAULT_LOG_DIR


def mapper_path(name: str) -> str:
    return str(Path("/dev/mapper") / name)
