from .base import ProvisionStage
from .disk import (
    CreateVirtualDiskStage,
    MountVirtualDiskStage,
    InitializeDiskStage,
    CreatePartitionStage,
    FormatVolumeStage,
    VerifyVolumeStage
)
from .workspace import WorkspaceStage, ExportEnvironmentStage
