#!/usr/bin/env python3
"""
Environment export for the dev drive.

This module derives the build-tool environment variables from a mount point
and writes them to an environment sink, normally the file that GitHub Actions
names in ``GITHUB_ENV``.
"""

import abc
import logging
from pathlib import Path
from typing import Dict, TextIO, Union

from dotenv import dotenv_values

from .exceptions import ProvisioningError, SinkError

TMP_DIR_NAME = "pixi-tmp"

# Exported keys and the suffix appended to the mount point, in export order
ENVIRONMENT_SUFFIXES = (
    ("DEV_DRIVE", ""),
    ("RUSTUP_HOME", "/.rustup"),
    ("CARGO_HOME", "/.cargo"),
    ("PIXI_WORKSPACE", "/pixi"),
)


def _check_mount_path(mount_path: str) -> None:
    if not mount_path or not mount_path.strip():
        raise ProvisioningError("Mount path is empty; no drive was assigned")


def tmp_dir_for(mount_path: str) -> str:
    """Return the temp directory that lives on the dev drive."""
    _check_mount_path(mount_path)
    return f"{mount_path}/{TMP_DIR_NAME}"


def derive_environment(mount_path: str) -> Dict[str, str]:
    """
    Derive the environment assignments for a dev drive.

    Args:
        mount_path: Drive root, for example ``E:``

    Returns:
        Dict[str, str]: Assignments in export order
    """
    _check_mount_path(mount_path)
    return {key: f"{mount_path}{suffix}" for key, suffix in ENVIRONMENT_SUFFIXES}


def format_assignment(key: str, value: str) -> str:
    """Render one ``KEY=VALUE`` line, rejecting input that would break it."""
    if not key or "=" in key or any(c in key for c in "\r\n"):
        raise SinkError(f"Invalid environment variable name: {key!r}")
    if any(c in value for c in "\r\n"):
        raise SinkError(f"Value for {key} contains a line break")
    return f"{key}={value}"


class EnvironmentSink(abc.ABC):
    """
    Append-only target for environment assignments.

    The parent CI process reads whatever a sink writes and injects the
    variables into subsequent job steps.
    """

    def __init__(self):
        self.logger = logging.getLogger("sink")

    @abc.abstractmethod
    def write_lines(self, lines) -> None:
        """Append already formatted lines to the sink."""

    def export(self, environment: Dict[str, str]) -> None:
        """
        Export environment assignments.

        All lines are formatted before anything is written, so an invalid
        value leaves the sink untouched.

        Args:
            environment: Assignments in export order

        Raises:
            SinkError: If a value is invalid or the sink cannot be written
        """
        lines = [format_assignment(k, v) for k, v in environment.items()]
        self.write_lines(lines)
        for key, value in environment.items():
            self.logger.info(f"Exported {key}={value}")


class GitHubEnvFile(EnvironmentSink):
    """Environment sink backed by the ``GITHUB_ENV`` file."""

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)

    def write_lines(self, lines) -> None:
        try:
            with open(self.path, "a", encoding="utf-8", newline="\n") as f:
                for line in lines:
                    f.write(f"{line}\n")
        except OSError as e:
            raise SinkError(f"Cannot write environment file {self.path}: {e}")

    def read(self) -> Dict[str, str]:
        """Parse the assignments currently stored in the file."""
        if not self.path.exists():
            return {}
        return dict(dotenv_values(self.path, encoding="utf-8"))

    def __repr__(self):
        return f"GitHubEnvFile({str(self.path)!r})"


class StreamSink(EnvironmentSink):
    """Environment sink that writes assignments to a text stream."""

    def __init__(self, stream: TextIO):
        super().__init__()
        self.stream = stream

    def write_lines(self, lines) -> None:
        try:
            for line in lines:
                self.stream.write(f"{line}\n")
            self.stream.flush()
        except OSError as e:
            raise SinkError(f"Cannot write environment to stream: {e}")
