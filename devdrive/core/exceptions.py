# devdrive/core/exceptions.py
"""Custom exceptions for devdrive."""


class DevDriveError(Exception):
    """Base exception for all devdrive errors"""
    pass


class ProvisioningError(DevDriveError):
    """Raised when any step of the provisioning chain fails"""
    pass


class BackingFileExistsError(ProvisioningError):
    """Raised when the virtual disk backing file is already present"""
    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Virtual disk backing file already exists: {path}. "
            "Refusing to overwrite it."
        )


class CommandError(ProvisioningError):
    """Raised when a PowerShell step exits non-zero or prints garbage"""
    def __init__(self, step: str, message: str, returncode: int = None):
        self.step = step
        self.returncode = returncode
        detail = f" (exit code {returncode})" if returncode is not None else ""
        super().__init__(f"{step} failed{detail}: {message}")


class StepTimeoutError(ProvisioningError):
    """Raised when a PowerShell step does not finish in time"""
    def __init__(self, step: str, timeout: float):
        self.step = step
        self.timeout = timeout
        super().__init__(f"{step} did not complete within {timeout:g}s")


class ConfigError(DevDriveError):
    """Raised for invalid or missing configuration"""
    pass


class SinkError(DevDriveError):
    """Raised when environment assignments cannot be exported"""
    pass


class UnsupportedPlatformError(DevDriveError):
    """Raised when running on a host without Hyper-V storage cmdlets"""
    def __init__(self, platform: str):
        self.platform = platform
        super().__init__(
            f"Dev drive provisioning requires Windows, not {platform}"
        )


def handle_devdrive_error(error: DevDriveError) -> str:
    """
    Convert a devdrive error to a user-friendly message.

    Args:
        error: The error to handle

    Returns:
        A formatted error message
    """
    if isinstance(error, BackingFileExistsError):
        return (f"Dev drive already provisioned at {error.path}.\n"
                "Provisioning is not idempotent; start from a clean runner.")
    elif isinstance(error, StepTimeoutError):
        return f"Timed out: {error.step} exceeded {error.timeout:g}s"
    elif isinstance(error, ProvisioningError):
        return f"Provisioning failed: {error}"
    else:
        return str(error)
