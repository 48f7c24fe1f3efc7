"""Exception hierarchy for desktop-bundler.

Every failure is raised with the operation and the path (or value) involved in
its message, and the underlying cause chained with ``raise ... from``.
"""


class BundleError(RuntimeError):
    """Base class for every bundling failure."""


class ConfigurationError(BundleError, ValueError):
    """Raised when a configuration cannot be loaded or resolved."""


class InvalidOSError(ConfigurationError):
    """Raised when an environment names an OS outside the supported set."""


class FilesystemError(BundleError):
    """Raised when creating, removing, moving, copying or chmoding a path fails."""


class DownloadError(BundleError):
    """Raised when a vendor archive cannot be downloaded."""


class BuildError(BundleError):
    """Raised when an external tool (``go``, ``rsrc``) fails."""


class UnsupportedPlatformError(BundleError):
    """Raised when no finalizer exists for an environment's OS."""
