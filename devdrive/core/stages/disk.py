"""
Disk stages: create, mount, initialize, partition, format and verify.
"""

from pathlib import Path

from ..exceptions import BackingFileExistsError, ProvisioningError
from ..powershell import quote
from ..volume import PARTITION_STYLE
from .base import ProvisionStage


class CreateVirtualDiskStage(ProvisionStage):
    """Create the VHDX backing file."""

    description = "New-VHD"

    async def execute(self) -> None:
        volume = self.volume
        errors = volume.validate()
        if errors:
            raise ProvisioningError("; ".join(errors))

        if Path(volume.backing_path).exists():
            raise BackingFileExistsError(volume.backing_path)

        self.logger.info(
            f"Creating {volume.size_bytes} byte virtual disk at {volume.backing_path}"
        )
        result = await self.powershell(
            f"New-VHD -Path {quote(volume.backing_path)} "
            f"-SizeBytes {volume.size_bytes} -Dynamic | "
            "Select-Object Path, Size | ConvertTo-Json -Compress"
        )
        self.logger.debug(f"New-VHD result: {result}")


class MountVirtualDiskStage(ProvisionStage):
    """Attach the virtual disk to the host storage stack."""

    description = "Mount-VHD"

    async def execute(self) -> None:
        result = await self.powershell(
            f"Mount-VHD -Path {quote(self.volume.backing_path)} -Passthru | "
            "Select-Object DiskNumber, Attached | ConvertTo-Json -Compress"
        )
        self.volume.disk_number = int(self.require(result, "DiskNumber"))
        self.logger.info(f"Virtual disk attached as disk {self.volume.disk_number}")


class InitializeDiskStage(ProvisionStage):
    """Write a GPT partition table to the attached disk."""

    description = "Initialize-Disk"

    async def execute(self) -> None:
        result = await self.powershell(
            f"Initialize-Disk -Number {self.volume.disk_number} "
            f"-PartitionStyle {PARTITION_STYLE} -PassThru | "
            "Select-Object Number, Size, "
            "@{Name='PartitionStyle';Expression={[string]$_.PartitionStyle}} | "
            "ConvertTo-Json -Compress"
        )
        self.volume.disk_size = int(self.require(result, "Size"))
        self.volume.partition_style = self.field(result, "PartitionStyle") or PARTITION_STYLE
        self.logger.info(
            f"Disk {self.volume.disk_number} initialized "
            f"({self.volume.partition_style}, {self.volume.disk_size} bytes)"
        )


class CreatePartitionStage(ProvisionStage):
    """Create one partition spanning the disk and assign a drive letter."""

    description = "New-Partition"

    async def execute(self) -> None:
        result = await self.powershell(
            f"New-Partition -DiskNumber {self.volume.disk_number} "
            "-AssignDriveLetter -UseMaximumSize | "
            "Select-Object PartitionNumber, Size, "
            "@{Name='DriveLetter';Expression={[string]$_.DriveLetter}} | "
            "ConvertTo-Json -Compress"
        )
        letter = str(self.require(result, "DriveLetter")).strip()
        if len(letter) != 1 or not letter.isalpha():
            raise ProvisioningError(f"New-Partition assigned no usable drive letter: {letter!r}")
        self.volume.drive_letter = letter.upper()
        self.logger.info(f"Partition created as {self.volume.mount_path}")


class FormatVolumeStage(ProvisionStage):
    """Format the new partition."""

    description = "Format-Volume"

    async def execute(self) -> None:
        volume = self.volume
        self.logger.info(f"Formatting {volume.mount_path} as {volume.filesystem}")
        result = await self.powershell(
            f"Format-Volume -DriveLetter {volume.drive_letter} "
            f"-FileSystem {quote(volume.filesystem)} -Confirm:$false -Force | "
            "Select-Object FileSystem, Size, SizeRemaining | "
            "ConvertTo-Json -Compress"
        )
        volume.reported_filesystem = str(self.require(result, "FileSystem"))
        volume.volume_size = int(self.require(result, "Size"))


class VerifyVolumeStage(ProvisionStage):
    """Check the formatted volume against what was requested."""

    description = "verify volume"

    async def execute(self) -> None:
        volume = self.volume
        if volume.disk_size is None or volume.disk_size < volume.size_bytes:
            raise ProvisioningError(
                f"Disk size {volume.disk_size} is smaller than requested {volume.size_bytes}"
            )
        if (volume.reported_filesystem or "").lower() != volume.filesystem.lower():
            raise ProvisioningError(
                f"Volume {volume.mount_path} reports filesystem "
                f"{volume.reported_filesystem!r}, expected {volume.filesystem!r}"
            )
        self.logger.info(
            f"Volume {volume.mount_path} ready: {volume.reported_filesystem}, "
            f"{volume.volume_size} bytes"
        )
