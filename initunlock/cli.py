"""CLI entrypoint: unlock LUKS devices in the initramfs and import the pool."""

from __future__ import annotations

import argparse
import os
import sys
import time
from typing import Any, Dict, Optional

from . import console
from .config import load_config
from .devices import discover_luks_devices
from .dispatch import unlock_all
from .errors import ConfigError, UnlockError
from .executil import append_jsonl, log, resolve_log_path, trace
from .luks import open_key_container
from .menu import show_menu
from .model import Continuation, UnlockConfig
from .pool import import_pool, load_module
from .recovery import finalize_boot, print_recovery_help

RESULT_CODES: Dict[str, int] = {
    "BOOT_RESUME": 0,
    "RECOVERY_HALT": 1,
    "FAIL_KEY_CONTAINER": 1,
    "FAIL_POOL_IMPORT": 1,
    "FAIL_MODULE": 1,
    "FAIL_RESUME_BOOT": 1,
    "FAIL_UNHANDLED": 1,
    "FAIL_CONFIG": 2,
}

ERROR_RESULTS = {
    "KeyContainerError": "FAIL_KEY_CONTAINER",
    "PoolImportError": "FAIL_POOL_IMPORT",
    "ModuleLoadError": "FAIL_MODULE",
    "ResumeBootError": "FAIL_RESUME_BOOT",
    "ConfigError": "FAIL_CONFIG",
}


def _record_result(kind: str, extra: Optional[Dict[str, Any]] = None) -> int:
    payload: Dict[str, Any] = {"result": kind, "ts": int(time.time())}
    if extra:
        payload.update(extra)
    path = resolve_log_path()
    if path:
        append_jsonl(path, payload)
    return RESULT_CODES.get(kind, 1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="initramfs-unlock",
        description="Open LUKS devices with a key from an encrypted keyfile and import the ZFS pool.",
    )
    choice = parser.add_mutually_exclusive_group()
    choice.add_argument("--boot", dest="choice", action="store_const", const=Continuation.PROCEED,
                        help="skip the menu and continue booting")
    choice.add_argument("--shell", dest="choice", action="store_const", const=Continuation.STOP,
                        help="skip the menu and stay in the rescue shell")
    parser.add_argument("--pool", default=None)
    parser.add_argument("--prefix", default=None, help="mapper name prefix (default: sn-)")
    parser.add_argument("--key-container", default=None)
    parser.add_argument("--key-name", default=None)
    parser.add_argument("--altroot", default=None, help="import the pool with -R ALTROOT")
    parser.add_argument("--lock-file", default=None)
    parser.add_argument("--resume-boot", default=None)
    parser.add_argument("--snapshot-limit", type=int, default=None)
    parser.add_argument("--dry-run", action="store_true")
    parser.add_argument("--no-color", action="store_true")
    return parser


def unlock_devices(cfg: UnlockConfig) -> list:
    open_key_container(cfg)

    console.step("opening hard drives")
    console.rule()
    devices = discover_luks_devices(cfg.luks_type, dry_run=cfg.dry_run)
    outcomes = unlock_all(devices, cfg)
    console.rule()
    unlocked = sum(1 for o in outcomes if o.ok)
    console.step(f"unlocked {unlocked} of {len(outcomes)} devices")
    return outcomes


def bootstrap_pool(cfg: UnlockConfig) -> None:
    console.step("loading zfs module")
    load_module("zfs", required=True, dry_run=cfg.dry_run)
    console.step(f"importing {cfg.pool} (no mount)")
    import_pool(cfg.pool, altroot=cfg.altroot, dry_run=cfg.dry_run)


def run_sequence(cfg: UnlockConfig, choice: Optional[Continuation] = None) -> int:
    """Drive INIT -> MENU_SHOWN -> DEVICES_UNLOCKED -> POOL_IMPORTED -> halt/resume."""

    load_module("loop", required=False, dry_run=cfg.dry_run)

    if choice is None:
        choice = show_menu(dry_run=cfg.dry_run)
    trace("cli.state", state="MENU_SHOWN", choice=choice.value)

    outcomes = unlock_devices(cfg)
    trace("cli.state", state="DEVICES_UNLOCKED", unlocked=sum(1 for o in outcomes if o.ok))
    summary = {"devices": [o.as_dict() for o in outcomes], "pool": cfg.pool}

    bootstrap_pool(cfg)
    trace("cli.state", state="POOL_IMPORTED", pool=cfg.pool)

    if choice is Continuation.STOP:
        summary.update(print_recovery_help(cfg))
        return _record_result("RECOVERY_HALT", summary)

    finalize_boot(cfg)
    return _record_result("BOOT_RESUME", summary)


def _main_impl(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.no_color or "NO_COLOR" in os.environ:
        console.set_color(False)
    cfg = load_config(args)
    trace("cli.args", config=vars(cfg), choice=args.choice.value if args.choice else None)
    return run_sequence(cfg, args.choice)


def main(argv: Optional[list[str]] = None) -> int:
    try:
        return _main_impl(argv)
    except UnlockError as exc:
        kind = ERROR_RESULTS.get(type(exc).__name__, "FAIL_UNHANDLED")
        log("ERROR", "cli.failed", result=kind, error=str(exc))
        console.error(console.failure(str(exc)))
        if not isinstance(exc, ConfigError):
            console.error("staying in the rescue shell")
        return _record_result(kind, {"error": str(exc)})
    except Exception as exc:  # noqa: BLE001
        log("ERROR", "cli.unhandled", error=repr(exc))
        console.error(console.failure(f"unexpected error: {exc}"))
        return _record_result("FAIL_UNHANDLED", {"error": repr(exc)})


if __name__ == "__main__":
    sys.exit(main())
