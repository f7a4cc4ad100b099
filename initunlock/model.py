import enum
from dataclasses import dataclass
from typing import Optional

from .paths import mapper_path as _mapper_path


class BusType(enum.Enum):
    NVME = "nvme"
    SATA = "sata"
    PATA = "pata"
    UNKNOWN = "unknown"


class Continuation(enum.Enum):
    """Operator answer from the menu; STOP keeps the rescue shell."""

    PROCEED = "proceed"
    STOP = "stop"


@dataclass
class UnlockConfig:
    prefix: str = "sn-"
    key_container: str = "/root/loop.crypt"
    key_name: str = "key"
    pool: str = "tank"
    altroot: Optional[str] = None
    lock_file: str = "/tmp/rescueshell.lock"
    resume_boot: str = "/usr/sbin/resume-boot"
    snapshot_limit: int = 10
    luks_type: str = "crypto_LUKS"
    dry_run: bool = False

    @property
    def key_file(self) -> str:
        return _mapper_path(self.key_name)


@dataclass(frozen=True)
class DeviceIdentity:
    serial: str = ""
    manufacturer: str = ""


@dataclass
class UnlockOutcome:
    device: str
    bus: BusType
    ordinal: int
    name: Optional[str] = None
    ok: bool = False
    reason: Optional[str] = None

    @property
    def mapper_path(self) -> Optional[str]:
        return _mapper_path(self.name) if self.name else None

    def as_dict(self) -> dict:
        return {
            "device": self.device,
            "bus": self.bus.value,
            "ordinal": self.ordinal,
            "name": self.name,
            "ok": self.ok,
            "reason": self.reason,
        }


def mapper_name(prefix: str, serial: str) -> str:
    return f"{prefix}{serial}"
