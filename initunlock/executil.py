from __future__ import annotations

"""Subprocess wrapper and JSONL trace logging."""

import datetime as _dt
import json
import os
import shlex
import subprocess
import time
from typing import IO, Sequence

from .paths import FALLBACK_LOG_DIR, logs_dir


LOG_DIRS: list[str] | None = None
LOG_PATH: str | None = None
LOG_NAME = "initunlock.jsonl"


def _log_dirs() -> list[str]:
    if LOG_DIRS:
        return list(LOG_DIRS)
    return [logs_dir(), FALLBACK_LOG_DIR]


def _ensure_logger() -> str | None:
    global LOG_PATH
    if LOG_PATH:
        return LOG_PATH
    for d in _log_dirs():
        try:
            os.makedirs(d, exist_ok=True)
        except OSError:
            continue
        LOG_PATH = os.path.join(d, LOG_NAME)
        return LOG_PATH
    return None


def resolve_log_path() -> str | None:
    """Return the active log path, creating directories when possible."""

    return _ensure_logger()


class Result:
    def __init__(self, rc: int, out: str, err: str, duration: float):
        self.rc, self.out, self.err, self.duration = rc, out, err, duration

    @property
    def ok(self) -> bool:
        return self.rc == 0

    def __repr__(self) -> str:
        return f"Result(rc={self.rc!r}, out={self.out!r}, err={self.err!r})"


LEVELS = {"TRACE": 10, "INFO": 20, "WARN": 30, "ERROR": 40, "NONE": 100}
LOG_LEVEL = os.environ.get("INITUNLOCK_LOG_LEVEL", "TRACE").upper()


def _write_jsonl(obj: dict):
    path = _ensure_logger()
    if not path:
        return
    try:
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(obj) + "\n")
    except OSError:
        pass


def log(level: str, event: str, **fields):
    lvl = LEVELS.get(level.upper(), 100)
    cur = LEVELS.get(LOG_LEVEL, 100)
    if lvl < cur:
        return
    ts = _dt.datetime.now(_dt.UTC).isoformat()
    rec = {"ts": ts, "level": level.upper(), "event": event}
    rec.update(fields)
    _write_jsonl(rec)


def trace(event: str, **fields):
    log("TRACE", event, **fields)


def warn(event: str, **fields):
    log("WARN", event, **fields)


def run(
    cmd: Sequence[str],
    check: bool = False,
    dry_run: bool = False,
    timeout: float | None = None,
    interactive: bool = False,
    stdout: IO[str] | None = None,
) -> Result:
    """Run ``cmd`` to completion and return its :class:`Result`.

    ``interactive`` keeps the terminal attached so tools can prompt for a
    password; nothing is captured in that mode.  ``stdout`` redirects the
    command's standard output to an open file and captures only stderr.
    A missing executable is reported as rc 127 rather than raised.
    """

    cmd = list(cmd)
    trace("exec.start", cmd=cmd, interactive=interactive)
    if dry_run:
        text = "DRY-RUN: " + " ".join(shlex.quote(c) for c in cmd)
        return Result(0, text, "", 0.0)
    started = time.time()
    kwargs: dict = {"text": True, "timeout": timeout}
    if stdout is not None:
        kwargs.update(stdout=stdout, stderr=subprocess.PIPE)
    elif not interactive:
        kwargs["capture_output"] = True
    try:
        proc = subprocess.run(cmd, **kwargs)
    except FileNotFoundError as exc:
        dur = time.time() - started
        log("ERROR", "exec.missing", cmd=cmd, error=str(exc))
        if check:
            raise
        return Result(127, "", str(exc), dur)
    dur = time.time() - started
    out = proc.stdout if isinstance(proc.stdout, str) else ""
    err = proc.stderr if isinstance(proc.stderr, str) else ""
    trace("exec.done", cmd=cmd, rc=proc.returncode, dur=dur, out=out, err=err)
    if check and proc.returncode != 0:
        raise subprocess.CalledProcessError(proc.returncode, cmd, out, err)
    return Result(proc.returncode, out, err, dur)


def udev_settle(dry_run: bool = False):
    run(["udevadm", "settle"], check=False, dry_run=dry_run)


def append_jsonl(path: str, obj: dict):
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(obj, ensure_ascii=False) + "\n")
    except OSError:
        pass
