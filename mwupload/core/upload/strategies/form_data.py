"""
Structured multipart transport.

Sends the file and the upload fields as one multipart/form-data POST
through the API client, reporting progress while the body is streamed.
"""
import logging
from typing import Any, Dict, Optional

from ..models import BinaryFile, TransportResult, UploadRequest
from ..protocols import ApiClientProtocol, ProgressCallback
from ..token_gate import TokenGate
from ...exceptions import TransportFailureError, UnsupportedArgumentError

FILE_FIELD = 'file'


class FormDataTransport:
    """
    Upload through a multipart request built by the client.

    Responsibilities:
    - Build parameters from the filtered fields
    - Stream the file and report fractional progress
    - Reject responses carrying ``error`` or ``warnings``
    """

    def __init__(self, api_client: ApiClientProtocol, token_gate: TokenGate):
        self._api = api_client
        self._token_gate = token_gate
        self._logger = logging.getLogger('mwupload.upload.form_data')

    async def upload(
        self,
        request: UploadRequest,
        progress_callback: Optional[ProgressCallback] = None
    ) -> Dict[str, Any]:
        """
        Upload ``request.file`` with a multipart POST.

        Raises:
            MissingFilenameError: If neither filename nor stash is set
            ServerRejectedError: On ``error`` or ``warnings`` in the response
            TransportFailureError: On network or serialization failures
        """
        request.require_target()

        file = request.file
        if not isinstance(file, BinaryFile):
            raise UnsupportedArgumentError(
                f"Multipart upload needs a BinaryFile, got {type(file).__name__}"
            )

        params = request.params(self._api.defaults)
        try:
            size_kb = file.size / 1024
        except OSError as e:
            raise TransportFailureError(f"Cannot read {file.name}: {e}", e) from e
        self._logger.debug(f"Uploading {file.name} ({size_kb:.1f} KB) as multipart")

        upload_progress = None
        if progress_callback:
            def upload_progress(loaded: int, total: int) -> None:
                if total:
                    progress_callback(loaded / total)

        result = await self._token_gate.post(
            params,
            files={FILE_FIELD: file},
            upload_progress=upload_progress
        )

        payload = TransportResult.from_payload(result).unwrap()

        if progress_callback:
            progress_callback(1.0)
        self._logger.info(f"Upload of {file.name} finished")
        return payload
