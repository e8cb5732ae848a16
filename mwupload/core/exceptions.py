"""
Custom exceptions for upload operations.

Every failure of an upload attempt surfaces as one of these; none of them
is fatal to the process.
"""
from typing import Optional, Any


class UploadError(Exception):
    """Base exception for all upload errors."""

    def __init__(self, message: str, payload: Optional[Any] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            payload: Server payload or detail object (if available)
        """
        self.payload = payload
        super().__init__(message)


class NoFileSelectedError(UploadError):
    """Raised when no binary object can be resolved from the file argument."""

    def __init__(self, message: str = "No file") -> None:
        super().__init__(message)


class UnsupportedArgumentError(UploadError):
    """Raised when the file argument cannot be handled by any transport."""

    def __init__(
        self,
        message: str = "Unsupported argument type passed to upload"
    ) -> None:
        super().__init__(message)


class MissingFilenameError(UploadError):
    """Raised when neither a filename nor the stash flag is given."""

    def __init__(
        self,
        message: str = "Filename not included in file data."
    ) -> None:
        super().__init__(message)


class TokenAcquisitionError(UploadError):
    """Raised when the CSRF token could not be fetched."""
    pass


class FrameLoadError(UploadError):
    """Raised when the upload frame fails to load its target."""
    pass


class EmptyResponseError(UploadError):
    """Raised when the upload frame holds no parseable response."""

    def __init__(
        self,
        message: str = "No response from API on upload attempt."
    ) -> None:
        super().__init__(message)


class ServerRejectedError(UploadError):
    """
    Raised when the server answers with an error or with warnings.

    The ``payload`` attribute holds the server's error or warnings object
    exactly as received.
    """

    def __init__(self, payload: Any, message: Optional[str] = None) -> None:
        super().__init__(message or f"Upload rejected: {payload!r}", payload)

    @property
    def code(self) -> Optional[str]:
        """Returns the server error code, if the payload carries one."""
        if isinstance(self.payload, dict):
            return self.payload.get('code')
        return None


class TransportFailureError(UploadError):
    """Raised on network or serialization failures while uploading."""
    pass
