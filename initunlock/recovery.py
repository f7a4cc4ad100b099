from __future__ import annotations

# Recovery guidance and hand-off to the real boot
import os

from . import console
from .errors import ResumeBootError
from .executil import run, trace
from .luks import close_key_container
from .model import UnlockConfig
from .pool import bootfs, list_snapshots, pool_status


def guidance_lines() -> list[str]:
    g = console.success
    return [
        f"change root with {g('zpool set bootfs=dataset pool')}",
        f"copy datasets with {g('zfs send pool/dataset@snap | zfs recv pool/newdataset')}",
        f"chroot with {g('zpool export pool && zpool import -f -R /newroot pool')} "
        f"then {g('chroot /newroot /bin/bash')}",
        f"{g('resume-boot')} at any time to continue booting",
    ]


def print_recovery_help(cfg: UnlockConfig) -> dict:
    console.emit(pool_status(cfg.pool, dry_run=cfg.dry_run).rstrip("\n"))
    dataset = bootfs(cfg.pool, dry_run=cfg.dry_run)
    snaps: list[str] = []
    if dataset:
        snaps = list_snapshots(dataset, dry_run=cfg.dry_run)
        for name in snaps[-cfg.snapshot_limit:]:
            console.emit(name)
        console.emit(
            f"found {len(snaps)} snapshots for {dataset}. "
            f"showing the most recent {min(len(snaps), cfg.snapshot_limit)}"
        )
    else:
        console.warn(f"pool {cfg.pool} has no bootfs property set")
    for line in guidance_lines():
        console.emit(line)
    return {"bootfs": dataset, "snapshots": len(snaps)}


def remove_lock(path: str, dry_run: bool = False) -> bool:
    if dry_run:
        return False
    try:
        os.remove(path)
    except FileNotFoundError:
        trace("recovery.lock_missing", path=path)
        return False
    return True


def finalize_boot(cfg: UnlockConfig) -> None:
    console.step("closing keyfile")
    close_key_container(cfg.key_name, dry_run=cfg.dry_run)
    remove_lock(cfg.lock_file, dry_run=cfg.dry_run)
    res = run([cfg.resume_boot], check=False, dry_run=cfg.dry_run, interactive=True)
    if not res.ok:
        raise ResumeBootError(f"{cfg.resume_boot} exited with rc={res.rc}")
