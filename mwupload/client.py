"""
WikiClient - High-level async client for MediaWiki uploads.

Example:
    >>> async with WikiClient("https://test.wikipedia.org/w/api.php") as wiki:
    ...     await wiki.login("Example@uploadbot", "bot-password")
    ...     result = await wiki.upload("Sunset.jpg", comment="Own work")
"""
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .core.api import AsyncAPIClient, APIConfig
from .core.upload import (
    BinaryFile,
    Environment,
    FileInput,
    FrameHost,
    StashFinisher,
    UploadFacade,
)
from .core.upload.protocols import ProgressCallback

logger = logging.getLogger('mwupload.client')

FileArgument = Union[str, Path, BinaryFile, FileInput]


class WikiClient:
    """
    High-level async client bundling the API client and the uploader.

    Args:
        endpoint: URL of the wiki's api.php (ignored when ``config`` is given)
        config: Full API configuration
        environment: Upload capabilities; ``Environment.legacy()`` forces
            frame uploads
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        config: Optional[APIConfig] = None,
        environment: Optional[Environment] = None
    ):
        if config is None:
            config = APIConfig.for_endpoint(endpoint) if endpoint else APIConfig.default()
        self._api = AsyncAPIClient(config)
        self._frame_host = FrameHost(self._api.get_session, proxy=config.proxy)
        self._uploader = UploadFacade(
            self._api,
            environment=environment,
            frame_host=self._frame_host
        )

    @property
    def api(self) -> AsyncAPIClient:
        return self._api

    @property
    def uploader(self) -> UploadFacade:
        return self._uploader

    async def __aenter__(self) -> 'WikiClient':
        await self._api.get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the frame host and the API client."""
        await self._frame_host.close()
        await self._api.close()

    async def login(self, username: str, password: str) -> Dict[str, Any]:
        """Log in with a bot password."""
        return await self._api.login(username, password)

    def _as_upload_source(self, file: FileArgument) -> Union[BinaryFile, FileInput]:
        """Paths become file controls, so either transport can take them."""
        if isinstance(file, (str, Path)):
            return FileInput.from_path(file)
        return file

    async def upload(
        self,
        file: FileArgument,
        filename: Optional[str] = None,
        comment: Optional[str] = None,
        text: Optional[str] = None,
        watchlist: Optional[str] = None,
        ignore_warnings: bool = False,
        progress_callback: Optional[ProgressCallback] = None
    ) -> Any:
        """
        Upload a file.

        Args:
            file: Local path, BinaryFile or FileInput
            filename: Target file name (defaults to the local name)
            comment: Upload summary
            text: Initial page text
            watchlist: 'watch', 'nochange', 'preferences' or 'unwatch'
            ignore_warnings: Upload even if the server warns
            progress_callback: Receives the uploaded fraction in [0, 1]

        Returns:
            API response
        """
        source = self._as_upload_source(file)
        fields = {
            'filename': filename or _default_filename(source),
            'comment': comment,
            'text': text,
            'watchlist': watchlist,
            'ignorewarnings': ignore_warnings,
        }
        return await self._uploader.upload(source, _drop_none(fields), progress_callback)

    async def upload_to_stash(
        self,
        file: FileArgument,
        filename: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
        **fields: Any
    ) -> StashFinisher:
        """
        Upload a file to the stash.

        Extra keyword arguments (``comment``, ``text``, ...) are kept for
        the finish request.

        Returns:
            StashFinisher to await for committing the file
        """
        source = self._as_upload_source(file)
        fields['filename'] = filename or _default_filename(source)
        return await self._uploader.upload_to_stash(
            source, _drop_none(fields), progress_callback
        )


def _default_filename(source: Union[BinaryFile, FileInput]) -> Optional[str]:
    if isinstance(source, BinaryFile):
        return source.name
    if source.path is not None:
        return source.path.name
    return None


def _drop_none(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}
