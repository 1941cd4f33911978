# Import exception classes for convenience
from .exceptions import (
    DevDriveError,
    ProvisioningError,
    BackingFileExistsError,
    CommandError,
    StepTimeoutError,
    ConfigError,
    SinkError,
    UnsupportedPlatformError
)
from .volume import Volume, ProvisionResult
