"""Route each discovered device to the unlock path for its bus."""

from __future__ import annotations

from typing import Iterable, Optional

from . import console
from .devices import classify
from .executil import trace
from .identity import resolve_identity
from .luks import unlock
from .model import BusType, UnlockConfig, UnlockOutcome, mapper_name


def valid_serial(serial: str) -> bool:
    # the serial becomes a /dev/mapper name
    return not any(ch.isspace() or ch == "/" for ch in serial)


def _not_attempted(outcome: UnlockOutcome, reason: str, label: str) -> UnlockOutcome:
    outcome.reason = reason
    console.emit(console.failure(label))
    trace("dispatch.not_attempted", device=outcome.device, bus=outcome.bus.value, reason=reason)
    return outcome


def classify_and_unlock(
    device: str,
    cfg: UnlockConfig,
    ordinal: int = 0,
    seen: Optional[set[str]] = None,
) -> UnlockOutcome:
    bus = classify(device)
    outcome = UnlockOutcome(device=device, bus=bus, ordinal=ordinal)

    if bus is BusType.SATA or bus is BusType.PATA:
        return _not_attempted(outcome, "not implemented", "FAILED - not implemented")
    if bus is BusType.UNKNOWN:
        console.emit(f"{console.highlight(device)}  ", end="")
        return _not_attempted(outcome, "unclassified", "SKIPPED - unclassified device")

    ident = resolve_identity(device, dry_run=cfg.dry_run)
    console.emit(console.highlight(f"{ident.manufacturer}  {ident.serial}  "), end="")
    if not ident.serial:
        return _not_attempted(outcome, "no serial number", "FAILED - no serial number")
    if not valid_serial(ident.serial):
        return _not_attempted(outcome, "invalid serial", "FAILED - invalid serial")
    if seen is not None:
        if ident.serial in seen:
            return _not_attempted(outcome, "duplicate serial", "FAILED - duplicate serial")
        seen.add(ident.serial)

    outcome.name = mapper_name(cfg.prefix, ident.serial)
    outcome.ok = unlock(device, outcome.name, cfg.key_file, dry_run=cfg.dry_run)
    if not outcome.ok:
        outcome.reason = "luksOpen failed"
    return outcome


def unlock_all(devices: Iterable[str], cfg: UnlockConfig) -> list[UnlockOutcome]:
    outcomes: list[UnlockOutcome] = []
    seen: set[str] = set()
    for ordinal, device in enumerate(devices, start=1):
        console.emit(f"{console.highlight(str(ordinal))}    ", end="")
        outcomes.append(classify_and_unlock(device, cfg, ordinal=ordinal, seen=seen))
    trace("dispatch.done", outcomes=[o.as_dict() for o in outcomes])
    return outcomes
