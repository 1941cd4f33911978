#!/usr/bin/env python3
"""
Base provisioning stage.

This module defines the abstract base class for all stages in the dev drive
provisioning chain, providing the shared lifecycle and helpers.
"""

import abc
import asyncio
import logging
from typing import Any, Dict, Optional

from ..exceptions import ProvisioningError
from ..volume import Volume


class ProvisionStage(abc.ABC):
    """
    Abstract base class for provisioning stages.

    Attributes:
        name (str): Name of the stage
        state (Dict[str, Any]): Shared provisioning state
        logger (logging.Logger): Logger instance
        error (Optional[Exception]): Error raised by the last run, if any
    """

    # Human readable description used in logs and error messages
    description = "stage"

    def __init__(self, state: Dict[str, Any]):
        """
        Initialize the stage.

        Args:
            state: Shared provisioning state
        """
        self.name = self.__class__.__name__
        self.state = state
        self.logger = logging.getLogger(f"stage.{self.name.lower()}")
        self.error: Optional[Exception] = None
        self.stage_state = {}

    @property
    def volume(self) -> Volume:
        return self.state["volume"]

    async def powershell(self, script: str) -> Any:
        """Run a PowerShell step with the configured timeout."""
        return await self.state["runner"].run(
            self.description, script, timeout=self.state.get("step_timeout")
        )

    @staticmethod
    def field(result: Any, name: str, default: Any = None) -> Any:
        """Read a field from a step result; single-item lists are unwrapped."""
        if isinstance(result, list):
            result = result[0] if len(result) == 1 else None
        if not isinstance(result, dict):
            return default
        return result.get(name, default)

    def require(self, result: Any, field: str) -> Any:
        """
        Extract a required field from a step result.

        Raises:
            ProvisioningError: If the field is missing or empty
        """
        value = self.field(result, field)
        if value is None or value == "":
            raise ProvisioningError(
                f"{self.description} returned no {field}: {result!r}"
            )
        return value

    async def pre_run(self) -> None:
        self.logger.info(f"Starting stage: {self.name}")
        self.stage_state["start_time"] = asyncio.get_running_loop().time()

    @abc.abstractmethod
    async def execute(self) -> None:
        """
        Execute the main stage logic.

        Raises:
            ProvisioningError: If the stage cannot complete
        """

    async def post_run(self, success: bool) -> None:
        """
        Record stage results.

        Args:
            success: Whether the stage execution was successful
        """
        if "start_time" in self.stage_state:
            duration = asyncio.get_running_loop().time() - self.stage_state["start_time"]
            self.logger.debug(f"Stage completed in {duration:.2f}s")

        if success:
            self.state["completed_stages"] = self.state.get("completed_stages", []) + [self.name]
            self.logger.info(f"Stage {self.name} completed successfully")
        else:
            self.logger.error(f"Stage {self.name} failed: {self.error}")

    async def run(self) -> bool:
        """
        Run the full stage lifecycle.

        Returns:
            bool: True if the stage succeeded, False otherwise. On failure the
            raised exception is kept in ``error``.
        """
        success = False
        self.error = None

        try:
            await self.pre_run()
            await self.execute()
            success = True
        except Exception as e:
            self.error = e
            self.logger.debug(f"Stage {self.name} raised", exc_info=True)
        finally:
            await self.post_run(success)

        return success
