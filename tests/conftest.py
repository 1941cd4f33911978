#!/usr/bin/env python3
"""
Pytest configuration and fixtures for the devdrive tests.

The PowerShell backend is replaced by a scripted runner so the provisioning
chain can run on any host.
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from devdrive.core.environment import EnvironmentSink
from devdrive.core.volume import DEV_DRIVE_SIZE


DEFAULT_RESPONSES = {
    "New-VHD": {"Path": "C:\\pixi_dev_drive.vhdx", "Size": DEV_DRIVE_SIZE},
    "Mount-VHD": {"DiskNumber": 3, "Attached": True},
    "Initialize-Disk": {"Number": 3, "Size": DEV_DRIVE_SIZE, "PartitionStyle": "GPT"},
    "New-Partition": {"PartitionNumber": 2, "Size": 21339570176, "DriveLetter": "E"},
    "Format-Volume": {"FileSystem": "ReFS", "Size": 21273509888, "SizeRemaining": 20135485440},
}


class FakeRunner:
    """Stands in for PowerShell, answering each step from a script."""

    def __init__(
        self,
        responses: Optional[Dict[str, Any]] = None,
        failures: Optional[Dict[str, Exception]] = None
    ):
        self.responses = dict(DEFAULT_RESPONSES)
        self.responses.update(responses or {})
        self.failures = failures or {}
        self.calls = []

    @property
    def steps(self):
        return [step for step, _, _ in self.calls]

    async def run(self, step: str, script: str, timeout: Optional[float] = None) -> Any:
        self.calls.append((step, script, timeout))
        if step in self.failures:
            raise self.failures[step]
        return self.responses.get(step)


class MemorySink(EnvironmentSink):
    """Collects exported lines in memory."""

    def __init__(self):
        super().__init__()
        self.lines = []

    def write_lines(self, lines) -> None:
        self.lines.extend(lines)


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def sink():
    return MemorySink()


@pytest.fixture
def drive_root(tmp_path, monkeypatch):
    """
    Make ``E:`` resolve to a directory under tmp_path.

    On a POSIX host ``E:/pixi-tmp`` is a relative path, so running from
    tmp_path with an ``E:`` directory stands in for the mounted drive.
    """
    monkeypatch.chdir(tmp_path)
    (tmp_path / "E:").mkdir()
    return tmp_path


@pytest.fixture
def backing_path(tmp_path):
    return str(tmp_path / "pixi_dev_drive.vhdx")
