"""Domain exceptions for the analysis stream pipeline."""


class AnalysisStreamError(Exception):
    """Base exception for all analysis stream errors."""

    def __init__(self, message: str, recoverable: bool = True):
        super().__init__(message)
        self.recoverable = recoverable


class TransportError(AnalysisStreamError):
    """Error delivering a task stream from the backend."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        recoverable: bool = True,
    ):
        super().__init__(message, recoverable)
        self.status_code = status_code


class AuthenticationError(TransportError):
    """Backend rejected the session credentials (HTTP 401)."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message, status_code=401, recoverable=False)


class StreamCancelledError(AnalysisStreamError):
    """A task stream was aborted through its cancellation token.

    Cancellation is an outcome, not a failure: goals ending this way are
    recorded as stopped.
    """

    def __init__(self, message: str = "Execution stopped by user."):
        super().__init__(message, recoverable=True)


class ControllerBusyError(AnalysisStreamError):
    """A run was requested while another run is still in progress."""

    def __init__(self, message: str = "A goal run is already in progress"):
        super().__init__(message, recoverable=True)
