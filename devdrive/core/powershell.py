#!/usr/bin/env python3
"""
PowerShell command execution for dev drive provisioning.

Every storage operation is a single PowerShell invocation whose result is
selected down to a few properties and emitted as JSON, so each step hands an
explicit, parsed result to the next one.
"""

import asyncio
import json
import logging
from typing import Any, Optional

from .exceptions import CommandError, StepTimeoutError

DEFAULT_EXECUTABLE = "powershell"
DEFAULT_STEP_TIMEOUT = 600.0


def quote(value: Any) -> str:
    """Quote a literal for use inside a PowerShell script."""
    text = str(value).replace("'", "''")
    return f"'{text}'"


class PowerShell:
    """
    Runs PowerShell scripts and parses their JSON output.

    Attributes:
        executable (str): PowerShell binary (``powershell`` or ``pwsh``)
        timeout (float): Default per-step timeout in seconds
        logger (logging.Logger): Logger instance
    """

    def __init__(
        self,
        executable: str = DEFAULT_EXECUTABLE,
        timeout: float = DEFAULT_STEP_TIMEOUT
    ):
        self.executable = executable
        self.timeout = timeout
        self.logger = logging.getLogger("powershell")

    def build_command(self, script: str) -> list:
        """
        Build the argument vector for a script.

        Args:
            script: PowerShell script body

        Returns:
            list: Command suitable for ``create_subprocess_exec``
        """
        return [
            self.executable,
            "-NoProfile",
            "-NonInteractive",
            "-ExecutionPolicy", "Bypass",
            "-Command",
            f"$ErrorActionPreference = 'Stop'; {script}"
        ]

    async def run(
        self,
        step: str,
        script: str,
        timeout: Optional[float] = None
    ) -> Any:
        """
        Run a script and return its parsed JSON output.

        Args:
            step: Human readable step name used in errors and logs
            script: PowerShell script body
            timeout: Override for the default step timeout

        Returns:
            Any: Decoded JSON value, or None if the script printed nothing

        Raises:
            CommandError: If the script fails or prints invalid JSON
            StepTimeoutError: If the script exceeds the timeout
        """
        timeout = self.timeout if timeout is None else timeout
        cmd = self.build_command(script)
        self.logger.debug(f"{step}: {script}")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
        except OSError as e:
            raise CommandError(step, f"cannot start {self.executable}: {e}")

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=timeout
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise StepTimeoutError(step, timeout)

        if process.returncode != 0:
            message = stderr.decode(errors="replace").strip() or "no error output"
            raise CommandError(step, message, process.returncode)

        return self.parse_output(step, stdout.decode(errors="replace"))

    def parse_output(self, step: str, output: str) -> Any:
        """Decode the JSON printed by ``ConvertTo-Json``."""
        output = output.strip()
        if not output:
            return None
        try:
            return json.loads(output)
        except json.JSONDecodeError as e:
            raise CommandError(step, f"unexpected output {output[:200]!r}: {e}")
