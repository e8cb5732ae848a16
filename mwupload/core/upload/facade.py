"""
Upload facade.

Provides a simplified interface for file uploads.
Follows Facade Pattern - hides the transport choice and the stash protocol.
"""
import logging
from typing import Any, Mapping, Optional, Tuple

from .capabilities import Environment, form_data_available
from .frames import FrameHost
from .models import FileInput, UploadRequest, UploadSource, result_field
from .protocols import ApiClientProtocol, ProgressCallback, Transport
from .stash import StashFinisher
from .strategies import FormDataTransport, IframeTransport
from .token_gate import TokenGate
from ..exceptions import (
    MissingFilenameError,
    NoFileSelectedError,
    ServerRejectedError,
    UnsupportedArgumentError,
)


class UploadFacade:
    """
    Simplified interface for uploads.

    The file is sent with a multipart request when the environment
    supports it, or through a hidden frame otherwise.

    Example:
        >>> uploader = UploadFacade(api_client)
        >>> file = BinaryFile.from_path("Sunset.jpg")
        >>> result = await uploader.upload(file, {'filename': 'Sunset.jpg'})
        >>> print(result['upload']['result'])
    """

    def __init__(
        self,
        api_client: ApiClientProtocol,
        environment: Optional[Environment] = None,
        frame_host: Optional[FrameHost] = None,
        token_type: str = 'csrf'
    ):
        """
        Initialize upload facade.

        Args:
            api_client: API client (``AsyncAPIClient`` or compatible)
            environment: Available capabilities (all by default)
            frame_host: Host for frame uploads; defaults to one sharing the
                API client's HTTP session and proxy
            token_type: Token type attached to upload requests
        """
        self._api = api_client
        self._environment = environment or Environment.default()
        self._logger = logging.getLogger('mwupload.upload')

        if frame_host is None:
            frame_host = FrameHost(
                getattr(api_client, 'get_session', None),
                proxy=getattr(api_client.config, 'proxy', None)
            )
        self._frame_host = frame_host

        self._token_gate = TokenGate(api_client, token_type)
        self._form_data = FormDataTransport(api_client, self._token_gate)
        self._iframe = IframeTransport(
            api_client, self._token_gate, frame_host, api_client.config.endpoint
        )

    @property
    def environment(self) -> Environment:
        return self._environment

    @property
    def frame_host(self) -> FrameHost:
        return self._frame_host

    @property
    def token_gate(self) -> TokenGate:
        return self._token_gate

    def _select_transport(self, file: Any) -> Tuple[UploadSource, Transport]:
        """
        Resolve the file argument and pick the transport for it.

        This is the only place where the transport is chosen.
        """
        capable = form_data_available(self._environment)
        is_file_input = isinstance(file, FileInput)

        if capable and is_file_input and file.files is not None:
            file = file.files[0] if file.files else None

        if file is None:
            raise NoFileSelectedError()

        if capable and isinstance(file, self._environment.file_type):
            return file, self._form_data

        # Frame uploads submit the file control itself
        if not is_file_input:
            raise UnsupportedArgumentError()

        return file, self._iframe

    async def upload(
        self,
        file: Any,
        fields: Optional[Mapping[str, Any]] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> Any:
        """
        Upload a file.

        Args:
            file: FileInput handle or BinaryFile
            fields: Upload fields; keys outside ALLOWED_FIELDS are dropped
            progress_callback: Receives the uploaded fraction in [0, 1]

        Returns:
            Parsed API response

        Raises:
            NoFileSelectedError: If no file can be resolved
            UnsupportedArgumentError: If no transport can handle ``file``
            UploadError: Any failure of the chosen transport
        """
        resolved, transport = self._select_transport(file)
        request = UploadRequest.build(resolved, fields)
        self._logger.info(
            f"Uploading {request.fields.get('filename', '<stash>')} "
            f"via {type(transport).__name__}"
        )
        return await transport.upload(request, progress_callback)

    async def upload_to_stash(
        self,
        file: Any,
        fields: Optional[Mapping[str, Any]] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> StashFinisher:
        """
        Upload a file to the stash.

        Returns a StashFinisher; await it (optionally with more or
        conflicting fields) to finish the upload:

            >>> finish = await uploader.upload_to_stash(file, {'filename': 'testing.png'})
            >>> result = await finish({'filename': 'Final name.png'})

        Raises:
            MissingFilenameError: If ``fields`` has no filename
            ServerRejectedError: If the stash upload is rejected
        """
        fields = dict(fields or {})
        if not fields.get('filename'):
            raise MissingFilenameError()

        result = await self.upload(
            file,
            {'stash': True, 'filename': fields['filename']},
            progress_callback
        )

        filekey = None
        upload = result_field(result, 'upload')
        if upload and upload.get('filekey'):
            filekey = upload['filekey']
            self._logger.info(f"Stashed {fields['filename']} as {filekey}")
        elif result_field(result, 'error') or result_field(result, 'warning'):
            raise ServerRejectedError(result)
        else:
            self._logger.warning("Stash upload returned no file key")

        return StashFinisher(self._api, self._token_gate, fields, filekey)
