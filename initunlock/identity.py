"""NVMe controller identity (serial number, model string)."""

from __future__ import annotations

from .executil import run, warn
from .model import DeviceIdentity

SERIAL_FIELD = "sn"
MODEL_FIELD = "mn"


def _field(text: str, key: str) -> str:
    # ``nvme id-ctrl`` pads keys to a fixed width: "sn        : S4EWNX0R123"
    for line in (text or "").splitlines():
        if not line.startswith(key + " "):
            continue
        _, sep, value = line.partition(":")
        if not sep:
            return ""
        return " ".join(value.split())
    return ""


def parse_id_ctrl(text: str) -> DeviceIdentity:
    return DeviceIdentity(serial=_field(text, SERIAL_FIELD), manufacturer=_field(text, MODEL_FIELD))


def resolve_identity(device: str, dry_run: bool = False) -> DeviceIdentity:
    """Query ``nvme id-ctrl`` for ``device``.

    Never raises: a failed query yields empty strings, so callers cannot tell
    "no serial" from "query failed" without looking at the trace log.
    """

    res = run(["nvme", "id-ctrl", device], check=False, dry_run=dry_run)
    if not res.ok:
        warn("identity.query_failed", device=device, rc=res.rc, err=res.err)
        return DeviceIdentity()
    ident = parse_id_ctrl(res.out)
    if not ident.serial:
        warn("identity.no_serial", device=device)
    return ident
