"""Error taxonomy for provisioning runs."""

from constants import ExitCodes


class ProvisionError(Exception):
    """Base class for fatal provisioning errors."""

    exit_code = ExitCodes.FILE_ERROR


class PreconditionError(ProvisionError):
    """The target directory is missing or not a directory."""


class FetchError(ProvisionError):
    """A download, checkout or remote metadata request failed."""

    exit_code = ExitCodes.CONNECTION_ERROR


class ResolutionError(FetchError):
    """A version specifier could not be resolved to a concrete version."""


class ProvisionIOError(ProvisionError):
    """A local file or link could not be read, written or created."""


class CacheBackendError(Exception):
    """The remote cache backend failed; callers downgrade this to a warning."""
