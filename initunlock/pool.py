"""ZFS pool import and inspection."""

from __future__ import annotations

from typing import Optional

from . import console
from .errors import ModuleLoadError, PoolImportError
from .executil import run, trace, warn


def load_module(name: str, required: bool = True, dry_run: bool = False) -> bool:
    res = run(["modprobe", name], check=False, dry_run=dry_run)
    if res.ok:
        return True
    if required:
        raise ModuleLoadError(f"modprobe {name} failed (rc={res.rc}): {(res.err or '').strip()}")
    warn("pool.modprobe_failed", module=name, rc=res.rc, err=res.err)
    console.warn(f"could not load kernel module {name}")
    return False


def pool_imported(pool: str, dry_run: bool = False) -> bool:
    res = run(["zpool", "list", "-H", "-o", "name", pool], check=False, dry_run=dry_run)
    if not res.ok or dry_run:
        return False
    return pool in (res.out or "").split()


def import_pool(pool: str, altroot: Optional[str] = None, dry_run: bool = False) -> None:
    """Force-import ``pool`` without mounting any dataset.

    A pool that is already imported (an earlier run from the rescue shell)
    is left as it is.
    """

    if pool_imported(pool, dry_run=dry_run):
        trace("pool.already_imported", pool=pool)
        return
    cmd = ["zpool", "import", "-f", "-N"]
    if altroot:
        cmd += ["-R", altroot]
    cmd.append(pool)
    res = run(cmd, check=False, dry_run=dry_run)
    if not res.ok:
        raise PoolImportError(f"zpool import {pool} failed (rc={res.rc}): {(res.err or '').strip()}")
    trace("pool.imported", pool=pool, altroot=altroot)


def pool_status(pool: str, dry_run: bool = False) -> str:
    res = run(["zpool", "status", pool], check=False, dry_run=dry_run)
    return res.out if res.ok else (res.err or "")


def bootfs(pool: str, dry_run: bool = False) -> Optional[str]:
    res = run(["zpool", "list", "-H", "-o", "bootfs", pool], check=False, dry_run=dry_run)
    value = (res.out or "").strip()
    if not res.ok or dry_run or value in ("", "-"):
        return None
    return value


def list_snapshots(dataset: str, dry_run: bool = False) -> list[str]:
    """Snapshot names of ``dataset``, oldest first."""

    res = run(
        ["zfs", "list", "-t", "snapshot", "-H", "-o", "name", "-s", "creation", dataset],
        check=False,
        dry_run=dry_run,
    )
    if not res.ok or dry_run:
        return []
    return [line.strip() for line in res.out.splitlines() if line.strip()]
