"""
Stash upload completion.

A stash upload leaves the file in temporary server storage under a file
key. ``StashFinisher`` commits it later, optionally with changed metadata.
"""
import logging
from typing import Any, Dict, Mapping, Optional

from .fields import build_upload_params
from .protocols import ApiClientProtocol
from .token_gate import TokenGate
from ..exceptions import MissingFilenameError, ServerRejectedError


class StashFinisher:
    """
    Callable that finishes a stashed upload.

    Each call sends one finish request. Fields passed to the call are
    merged over the fields of the original stash upload; the file key is
    always the one returned by the stash upload.

    Example:
        >>> finish = await uploader.upload_to_stash(file, {'filename': 'Test.png'})
        >>> result = await finish({'filename': 'Better name.png'})
    """

    def __init__(
        self,
        api_client: ApiClientProtocol,
        token_gate: TokenGate,
        fields: Mapping[str, Any],
        filekey: Optional[str]
    ):
        self._api = api_client
        self._token_gate = token_gate
        self._fields = dict(fields)
        self._filekey = filekey
        self._logger = logging.getLogger('mwupload.upload.stash')

    @property
    def filekey(self) -> Optional[str]:
        """The stash key of the uploaded file."""
        return self._filekey

    @property
    def fields(self) -> Dict[str, Any]:
        """Copy of the fields the stash upload was started with."""
        return dict(self._fields)

    async def __call__(self, more_fields: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """
        Commit the stashed file.

        Args:
            more_fields: Fields overriding the original ones

        Returns:
            Full API response

        Raises:
            MissingFilenameError: If no filename is left after merging
            ServerRejectedError: On ``upload.error``/``upload.warnings`` or
                an API error
        """
        merged = {**self._fields, **(more_fields or {})}
        if not merged.get('filename'):
            raise MissingFilenameError()

        params = {
            **build_upload_params(merged, self._api.defaults),
            'filekey': self._filekey,
            'format': 'json',
        }

        self._logger.info(f"Finishing stash upload {self._filekey} as {merged['filename']}")
        result = await self._token_gate.post(params)

        upload = result.get('upload')
        if isinstance(upload, Mapping):
            rejection = upload.get('error') or upload.get('warnings')
            if rejection:
                raise ServerRejectedError(rejection)

        return result

    def __repr__(self) -> str:
        return f"StashFinisher(filekey={self._filekey!r})"
