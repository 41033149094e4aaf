"""
Errors - Domain Error Taxonomy.

Every failure a user action can hit is one of the classes below. Callers
catch `FieldReportError` at the surface (CLI, web) and turn it into a
single message with `describe_error()`.
"""


class FieldReportError(Exception):
    """Base class for all field-reporting failures."""


class PermissionDenied(FieldReportError):
    def __init__(self, capability: str, permanently: bool = False):
        self.capability = capability
        self.permanently = permanently
        suffix = " permanently" if permanently else ""
        super().__init__(f"{capability} permission{suffix} denied")


class ServiceUnavailable(FieldReportError):
    """Platform location services are switched off."""

    def __init__(self, message: str = "Location services are disabled. Enable them."):
        super().__init__(message)


LocationUnavailable = ServiceUnavailable


class OperationTimeout(FieldReportError, TimeoutError):
    def __init__(self, operation: str, seconds: float):
        self.operation = operation
        self.seconds = seconds
        super().__init__(f"{operation} timed out after {seconds:g}s")


class PositionTimeout(OperationTimeout):
    def __init__(self, seconds: float):
        super().__init__("Location fix", seconds)


class FileAccessTimeout(OperationTimeout):
    def __init__(self, seconds: float):
        super().__init__("Video file access", seconds)


class PositionUnavailable(FieldReportError):
    """The positioning provider failed for a reason other than a timeout."""


class FileTooLarge(FieldReportError):
    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(
            f"Video file too large (max {limit // (1024 * 1024)}MB, got {size} bytes)"
        )


class UploadFailed(FieldReportError):
    def __init__(self, status_code: int | None = None, parse_error: str | None = None):
        self.status_code = status_code
        self.parse_error = parse_error
        if status_code is not None:
            message = f"Upload failed with status {status_code}"
        elif parse_error is not None:
            message = f"Upload response could not be read: {parse_error}"
        else:
            message = "Upload failed"
        super().__init__(message)


class NetworkError(UploadFailed):
    """Transport failure before any HTTP status was received."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__()
        self.args = (reason,)


class StorageUnavailable(FieldReportError):
    """A persistence layer could not be read or written."""


class BackendUnavailable(StorageUnavailable):
    """The shared record store failed."""


class LocalStorageUnavailable(StorageUnavailable):
    """On-device persistence failed."""


class RecordSaveFailed(BackendUnavailable):
    """The media upload succeeded but appending its record did not."""

    def __init__(self, message: str, uploaded_url: str):
        self.uploaded_url = uploaded_url
        super().__init__(message)


class InvalidCredentials(FieldReportError):
    def __init__(self, message: str = "Username and password are required"):
        super().__init__(message)


class AlreadyInProgress(FieldReportError):
    def __init__(self, operation: str = "Location submission"):
        self.operation = operation
        super().__init__(f"{operation} already in progress")


class ExportFailed(FieldReportError):
    def __init__(self, cause: BaseException | str):
        self.cause = cause
        super().__init__(str(cause))


def describe_error(exc: BaseException) -> str:
    """
    Converts an error into the one message shown to the user.

    Args:
        exc: Any exception raised by a user action.

    Returns:
        Human-readable message.
    """
    if isinstance(exc, NetworkError):
        return f"Network error: {exc.reason}"
    if isinstance(exc, RecordSaveFailed):
        return f"Upload succeeded but saving failed. Database error: {exc}"
    if isinstance(exc, BackendUnavailable):
        return f"Database error: {exc}"
    if isinstance(exc, LocalStorageUnavailable):
        return f"Storage error: {exc}"
    if isinstance(exc, PermissionDenied):
        return f"Permission denied: {exc}"
    if isinstance(exc, ExportFailed):
        return f"Export failed: {exc}"
    if isinstance(exc, FieldReportError):
        return str(exc)
    return f"Error: {exc}"
