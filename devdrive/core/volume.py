# devdrive/core/volume.py

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .exceptions import ProvisioningError

# Fixed dev drive parameters
DEV_DRIVE_SIZE = 20 * 1024 ** 3
DEV_DRIVE_PATH = "C:/pixi_dev_drive.vhdx"
DEV_DRIVE_FILESYSTEM = "ReFS"
PARTITION_STYLE = "GPT"


@dataclass
class Volume:
    """A virtual disk volume as it moves through provisioning."""
    backing_path: str
    size_bytes: int
    filesystem: str
    disk_number: Optional[int] = None
    disk_size: Optional[int] = None
    partition_style: Optional[str] = None
    drive_letter: Optional[str] = None
    reported_filesystem: Optional[str] = None
    volume_size: Optional[int] = None

    @property
    def mount_path(self) -> str:
        """Drive root such as ``E:``; only valid once a letter is assigned."""
        if not self.drive_letter or not self.drive_letter.strip():
            raise ProvisioningError(
                "Volume has no drive letter assigned; cannot derive mount path"
            )
        return f"{self.drive_letter.strip().upper()}:"

    def validate(self) -> List[str]:
        errors = []
        if not self.backing_path:
            errors.append("Backing path cannot be empty")
        if self.size_bytes <= 0:
            errors.append("Requested size must be positive")
        if not self.filesystem:
            errors.append("Filesystem kind cannot be empty")
        return errors


@dataclass
class ProvisionResult:
    mount_path: str
    tmp_dir: str
    environment: Dict[str, str] = field(default_factory=dict)
    volume: Optional[Volume] = None
