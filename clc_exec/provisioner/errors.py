class ProvisionerError(Exception):
    """Base class for failures reported to the host."""

    pass


class ConfigDecodeError(ProvisionerError):
    """Raised when the resource config cannot be decoded."""

    pass


class ClientConfigError(ProvisionerError):
    """Raised when a CLC client cannot be built from the supplied details."""

    pass


class AuthenticationError(ProvisionerError):
    """Raised when logging in to CLC fails."""

    pass


class PackageExecutionError(ProvisionerError):
    """Raised when a package execution request fails or is not queued."""

    pass


class StatusExtractionError(ProvisionerError):
    """Raised when an execution response carries no pollable status ID."""

    pass


class StatusPollError(ProvisionerError):
    """Raised when polling a job status cannot be started or breaks down."""

    pass


class StatusTimeoutError(ProvisionerError):
    """Raised when a job does not reach a terminal status in time."""

    def __init__(self, status_id: str, timeout: float):
        super().__init__(f"job {status_id} did not finish within {timeout}s")
        self.status_id = status_id
        self.timeout = timeout


class JobFailedError(ProvisionerError):
    """Raised when a queued job finishes in the failed state."""

    def __init__(self, status_id: str, status: str):
        super().__init__(f"unsuccessful job {status_id} failed with status: {status}")
        self.status_id = status_id
        self.status = status
