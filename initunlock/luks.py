"""LUKS open/close for the data devices and the keyfile container."""

from __future__ import annotations

import os

from . import console
from .errors import KeyContainerError
from .executil import run, trace, udev_settle, warn
from .model import UnlockConfig
from .paths import mapper_path


def mapping_exists(name: str) -> bool:
    return os.path.exists(mapper_path(name))


def open_key_container(cfg: UnlockConfig) -> None:
    """Open the keyfile container read-only; prompts for its password."""

    if not cfg.dry_run and mapping_exists(cfg.key_name):
        trace("luks.key_container.already_open", name=cfg.key_name)
        console.step(f"keyfile already open as {cfg.key_file}")
        return
    console.step("opening keyfile, need password: ", end="")
    # old cryptsetup releases only understand luksOpen
    cmd = ["cryptsetup", "luksOpen", "--readonly", cfg.key_container, cfg.key_name]
    res = run(cmd, check=False, dry_run=cfg.dry_run, interactive=True)
    if not res.ok:
        raise KeyContainerError(
            f"cryptsetup could not open {cfg.key_container} as {cfg.key_name} (rc={res.rc})"
        )
    udev_settle(dry_run=cfg.dry_run)


def close_key_container(name: str, dry_run: bool = False) -> bool:
    res = run(["cryptsetup", "luksClose", mapper_path(name)], check=False, dry_run=dry_run)
    if not res.ok:
        warn("luks.key_container.close_failed", name=name, rc=res.rc, err=res.err)
        console.warn(f"could not close {mapper_path(name)}: {(res.err or '').strip()}")
    return res.ok


def unlock(device: str, name: str, key_file: str, dry_run: bool = False) -> bool:
    """luksOpen ``device`` as ``/dev/mapper/<name>`` and print the outcome."""

    target = mapper_path(name)
    if not dry_run and mapping_exists(name):
        trace("luks.unlock.already_open", device=device, name=name)
        console.emit(f"{console.highlight(target)}  {console.success('SUCCESS (already open)')}")
        return True
    res = run(["cryptsetup", "luksOpen", device, "--key-file", key_file, name], check=False, dry_run=dry_run)
    if res.ok:
        console.emit(f"{console.highlight(target)}  {console.success()}")
    else:
        warn("luks.unlock.failed", device=device, name=name, rc=res.rc, err=res.err)
        console.emit(f"{console.highlight(target)}  {console.failure()}")
    return res.ok
