#!/usr/bin/env python3
"""
Dev drive provisioner.

This module runs the provisioning stages in strict order, handing a shared
state between them, and stops at the first stage that fails.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

from .environment import EnvironmentSink
from .exceptions import DevDriveError, ProvisioningError
from .powershell import PowerShell
from .stages import (
    CreateVirtualDiskStage,
    MountVirtualDiskStage,
    InitializeDiskStage,
    CreatePartitionStage,
    FormatVolumeStage,
    VerifyVolumeStage,
    WorkspaceStage,
    ExportEnvironmentStage,
    ProvisionStage
)
from .volume import ProvisionResult, Volume

STAGE_CLASSES = (
    CreateVirtualDiskStage,
    MountVirtualDiskStage,
    InitializeDiskStage,
    CreatePartitionStage,
    FormatVolumeStage,
    VerifyVolumeStage,
    WorkspaceStage,
    ExportEnvironmentStage,
)


class Provisioner:
    """
    Provisions a dev drive and exports its environment.

    Attributes:
        runner (PowerShell): Executes the storage cmdlets
        sink (EnvironmentSink): Receives the exported assignments
        step_timeout (Optional[float]): Per-step timeout override
        logger (logging.Logger): Logger instance
        state (Dict[str, Any]): State shared by the stages of the last run
    """

    def __init__(
        self,
        sink: EnvironmentSink,
        runner: Optional[PowerShell] = None,
        step_timeout: Optional[float] = None
    ):
        self.sink = sink
        self.runner = runner or PowerShell()
        self.step_timeout = step_timeout
        self.logger = logging.getLogger("provisioner")
        self.state: Dict[str, Any] = {}

    def _setup_stages(self) -> List[ProvisionStage]:
        return [stage_class(self.state) for stage_class in STAGE_CLASSES]

    async def provision(
        self,
        size_bytes: int,
        backing_path: str,
        filesystem: str
    ) -> ProvisionResult:
        """
        Create, mount, partition and format a virtual disk, then export it.

        Args:
            size_bytes: Requested virtual disk size
            backing_path: Path of the VHDX file to create
            filesystem: Filesystem to format the partition with

        Returns:
            ProvisionResult: Mount path, temp directory and exported environment

        Raises:
            ProvisioningError: If any stage fails; later stages do not run
        """
        volume = Volume(
            backing_path=str(backing_path),
            size_bytes=size_bytes,
            filesystem=filesystem
        )
        self.state = {
            "volume": volume,
            "runner": self.runner,
            "sink": self.sink,
            "step_timeout": self.step_timeout,
            "completed_stages": []
        }
        stages = self._setup_stages()

        start_time = time.time()
        self.logger.info(
            f"Provisioning {filesystem} dev drive at {backing_path} ({size_bytes} bytes)"
        )

        for i, stage in enumerate(stages):
            self.logger.debug(f"Stage {i + 1}/{len(stages)}: {stage.name}")
            if not await stage.run():
                self.logger.error(f"Stage {stage.name} failed, aborting provisioning")
                error = stage.error
                if isinstance(error, DevDriveError):
                    raise error
                raise ProvisioningError(f"{stage.description} failed: {error}") from error

        self.logger.info(
            f"Dev drive {volume.mount_path} provisioned in {time.time() - start_time:.1f}s"
        )
        return ProvisionResult(
            mount_path=self.state["mount_path"],
            tmp_dir=self.state["tmp_dir"],
            environment=self.state["environment"],
            volume=volume
        )


def provision(
    size_bytes: int,
    backing_path: str,
    filesystem: str,
    sink: EnvironmentSink,
    runner: Optional[PowerShell] = None,
    step_timeout: Optional[float] = None
) -> ProvisionResult:
    """Blocking wrapper around ``Provisioner.provision``."""
    provisioner = Provisioner(sink, runner=runner, step_timeout=step_timeout)
    return asyncio.run(provisioner.provision(size_bytes, backing_path, filesystem))
