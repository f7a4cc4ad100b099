"""Block device classification and LUKS discovery."""
from __future__ import annotations

from .executil import run, trace
from .model import BusType

# order matters only for readability; the prefixes are disjoint
BUS_PREFIXES = (
    ("/dev/nvme", BusType.NVME),
    ("/dev/sd", BusType.SATA),
    ("/dev/hd", BusType.PATA),
)


def classify(path: str) -> BusType:
    for prefix, bus in BUS_PREFIXES:
        if path.startswith(prefix):
            return bus
    return BusType.UNKNOWN


def discover_luks_devices(type_token: str = "crypto_LUKS", dry_run: bool = False) -> list[str]:
    """Return every block device blkid reports with ``TYPE=<type_token>``, sorted.

    blkid exits 2 when nothing matches; that and any other failure simply
    yield no devices.
    """

    res = run(
        ["blkid", "--match-token", f"TYPE={type_token}", "--output", "device"],
        check=False,
        dry_run=dry_run,
    )
    if not res.ok or dry_run:
        trace("devices.discover.empty", rc=res.rc, err=res.err)
        return []
    found = sorted({line.strip() for line in res.out.splitlines() if line.strip()})
    trace("devices.discover", devices=found)
    return found
