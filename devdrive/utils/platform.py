"""Host checks."""
import os
import sys

from ..core.exceptions import UnsupportedPlatformError


def ensure_supported_platform() -> None:
    """Refuse to provision anywhere but Windows."""
    if sys.platform != "win32":
        raise UnsupportedPlatformError(sys.platform)


def running_in_github_actions() -> bool:
    return os.environ.get("GITHUB_ACTIONS", "").lower() == "true"
