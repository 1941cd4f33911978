"""
devdrive
Provisions a ReFS dev drive on Windows CI runners and points build tool
caches at it.
"""

# Version information
__version__ = "1.0.0"

# Make key components available at package level
from .core.provisioner import Provisioner, provision
from .core.environment import derive_environment, GitHubEnvFile, StreamSink
from .core.exceptions import DevDriveError, ProvisioningError
