"""
Hidden frame transport.

Works without a client-side multipart builder: the upload fields and the
file control go into a hidden form whose target is a hidden frame, the
form is submitted, and the API response is read back from the document
loaded into the frame.

Sequence of one attempt:
1. The frame is attached and loads ``about:blank`` (first load event).
2. Meanwhile the CSRF token is fetched; the form is submitted once both
   the blank load and the token are done.
3. The response is loaded into the frame (second load event) and parsed.
4. Form and frame are detached, whatever the outcome.
"""
import asyncio
import itertools
import logging
from typing import Any, Optional
from xml.etree import ElementTree

from ..frames import FrameHost, Frame, parse_frame_result
from ..models import FileInput, ResultKind, TransportResult, UploadRequest
from ..protocols import ApiClientProtocol, ProgressCallback
from ..token_gate import TokenGate
from ...api.async_client import preprocess_parameters
from ...exceptions import (
    EmptyResponseError,
    FrameLoadError,
    UnsupportedArgumentError,
)

FILE_FIELD = 'file'

_frame_ids = itertools.count()


def next_frame_name() -> str:
    """Unique frame name; each call takes the next counter value."""
    return f"uploadframe-{next(_frame_ids)}"


def _is_empty(result: Any) -> bool:
    if result is None:
        return True
    if isinstance(result, ElementTree.Element):
        return False
    if isinstance(result, (dict, list, str)):
        return not result
    return False


class IframeTransport:
    """
    Upload by submitting a hidden form into a hidden frame.

    Needs a FileInput, since the form submits the file control itself.
    Progress is only reported once, as 1.0 on success.
    """

    def __init__(
        self,
        api_client: ApiClientProtocol,
        token_gate: TokenGate,
        frame_host: FrameHost,
        endpoint: str
    ):
        self._api = api_client
        self._token_gate = token_gate
        self._host = frame_host
        self._endpoint = endpoint
        self._logger = logging.getLogger('mwupload.upload.iframe')

    async def upload(
        self,
        request: UploadRequest,
        progress_callback: Optional[ProgressCallback] = None
    ) -> Any:
        """
        Upload ``request.file`` through a hidden frame.

        Raises:
            MissingFilenameError: If neither filename nor stash is set
            TokenAcquisitionError: If the token fetch fails; nothing is
                submitted then
            FrameLoadError: If the frame fails to load
            EmptyResponseError: If the frame holds no parseable response
            ServerRejectedError: On ``error`` or ``warnings`` in the response
        """
        request.require_target()

        file_input = request.file
        if not isinstance(file_input, FileInput):
            raise UnsupportedArgumentError(
                f"Frame upload needs a FileInput, got {type(file_input).__name__}"
            )

        params = request.params(self._api.defaults)
        name = next_frame_name()

        loop = asyncio.get_running_loop()
        frame_ready = loop.create_future()
        response_ready = loop.create_future()

        frame = self._host.create_frame(name)
        form = self._host.create_form(self._endpoint, name)

        def on_load(loaded: Frame) -> None:
            if not frame_ready.done():
                frame_ready.set_result(None)
            elif not response_ready.done():
                response_ready.set_result(loaded.document)

        def on_error(detail: str) -> None:
            error = FrameLoadError(f"iframe failed to load: {detail}", detail)
            for pending in (frame_ready, response_ready):
                if not pending.done():
                    pending.set_exception(error)
                    break

        # Handlers go in before attaching, or the blank load could be missed
        frame.on('load', on_load).on('error', on_error)
        frame.hidden = True

        for key, value in preprocess_parameters(params).items():
            form.add_hidden(key, value)
        form.add_file_input(file_input, FILE_FIELD)

        token_task = asyncio.ensure_future(self._token_gate.acquire())
        self._host.attach(form, frame)
        self._logger.debug(f"Attached {name} for {file_input.path}")

        try:
            _, token = await asyncio.gather(frame_ready, token_task)
            form.add_hidden('token', token)
            self._host.submit(form)

            document = await response_ready
            return self._handle_result(parse_frame_result(document), progress_callback)
        finally:
            if not token_task.done():
                token_task.cancel()
            for pending in (frame_ready, response_ready):
                pending.cancel()
            frame.off('load', on_load).off('error', on_error)
            self._host.detach(form, frame)
            self._logger.debug(f"Removed {name}")

    def _handle_result(
        self,
        result: Any,
        progress_callback: Optional[ProgressCallback]
    ) -> Any:
        if _is_empty(result):
            raise EmptyResponseError()

        outcome = TransportResult.from_payload(result)
        if outcome.kind is ResultKind.FAILURE:
            self._token_gate.report(outcome.payload)

        payload = outcome.unwrap()

        if progress_callback:
            progress_callback(1.0)
        self._logger.info("Frame upload finished")
        return payload
