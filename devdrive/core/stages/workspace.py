"""
Workspace stages: temp directory creation and environment export.
"""

from pathlib import Path

from ..environment import derive_environment, tmp_dir_for
from ..exceptions import ProvisioningError
from .base import ProvisionStage


class WorkspaceStage(ProvisionStage):
    """Create the temp directory on the dev drive."""

    description = "create workspace"

    async def execute(self) -> None:
        mount_path = self.volume.mount_path
        tmp_dir = tmp_dir_for(mount_path)

        # Create before export so consumers find it in place
        try:
            Path(tmp_dir).mkdir(exist_ok=True)
        except OSError as e:
            raise ProvisioningError(f"Cannot create {tmp_dir}: {e}")

        self.state["mount_path"] = mount_path
        self.state["tmp_dir"] = tmp_dir
        self.logger.info(f"Temp directory ready: {tmp_dir}")


class ExportEnvironmentStage(ProvisionStage):
    """Write the derived assignments to the environment sink."""

    description = "export environment"

    async def execute(self) -> None:
        environment = derive_environment(self.state["mount_path"])
        self.state["sink"].export(environment)
        self.state["environment"] = environment
