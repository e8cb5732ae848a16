"""
Protocol definitions for upload module.

Defines interfaces (protocols) for dependency injection and strategy pattern.
"""
from typing import Protocol, Dict, Any, Mapping, Optional, Callable

from .models import UploadRequest

ProgressCallback = Callable[[float], None]


class ApiClientProtocol(Protocol):
    """What the upload module needs from the API client."""

    @property
    def config(self) -> Any:
        """Client configuration; ``config.endpoint`` is the API URL."""
        ...

    @property
    def defaults(self) -> Dict[str, Any]:
        """Default parameters merged into every request."""
        ...

    async def post(
        self,
        params: Mapping[str, Any],
        files: Optional[Mapping[str, Any]] = None,
        upload_progress: Optional[Callable[[int, int], None]] = None
    ) -> Dict[str, Any]:
        """Perform a POST request."""
        ...

    async def get_token(self, token_type: str = 'csrf') -> str:
        """Get a (cached) token."""
        ...

    def bad_token(self, token_type: str = 'csrf') -> None:
        """Invalidate a cached token."""
        ...


class Transport(Protocol):
    """
    A file transfer strategy.

    Implementations normalize the server response the same way and raise
    UploadError subclasses on failure.
    """

    async def upload(
        self,
        request: UploadRequest,
        progress_callback: Optional[ProgressCallback] = None
    ) -> Any:
        """
        Upload the request's file.

        Args:
            request: Resolved file and filtered fields
            progress_callback: Receives the uploaded fraction in [0, 1]

        Returns:
            Parsed server response
        """
        ...
