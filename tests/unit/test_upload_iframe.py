"""Tests for the hidden frame upload transport."""
import asyncio
from xml.etree import ElementTree

import pytest
import aiohttp

from mwupload.core.api.errors import MWAPIError
from mwupload.core.exceptions import (
    EmptyResponseError,
    FrameLoadError,
    ServerRejectedError,
    TokenAcquisitionError,
)
from mwupload.core.upload import FileInput, FrameDocument
from mwupload.core.upload.strategies import next_frame_name

ENDPOINT = 'https://wiki.example.org/w/api.php'
SUCCESS = {'upload': {'result': 'Success', 'filename': 'Example.png'}}


async def _settle(rounds=5):
    for _ in range(rounds):
        await asyncio.sleep(0)


def _assert_torn_down(frame_host):
    assert len(frame_host.detach_calls) == 1
    assert frame_host.elements == ()


class TestFrameUpload:
    """Test suite for IframeTransport through the facade."""

    @pytest.mark.asyncio
    async def test_success(self, legacy_uploader, file_input, frame_host, make_document):
        """Test the response loaded into the frame is returned."""
        frame_host.responses.append(make_document(SUCCESS))
        progress = []

        result = await legacy_uploader.upload(
            file_input, {'filename': 'Example.png', 'ignorewarnings': True}, progress.append
        )

        assert result == SUCCESS
        assert progress == [1.0]
        _assert_torn_down(frame_host)

    @pytest.mark.asyncio
    async def test_form_contents(self, legacy_uploader, file_input, frame_host, make_document):
        """Test hidden fields carry the wire form of the parameters and the token."""
        frame_host.responses.append(make_document(SUCCESS))

        await legacy_uploader.upload(
            file_input,
            {'filename': 'Example.png', 'ignorewarnings': True, 'bogus': 'x'}
        )

        form = frame_host.submitted[0]
        assert dict(form.fields) == {
            'action': 'upload',
            'format': 'json',
            'filename': 'Example.png',
            'ignorewarnings': '1',
            'token': 'token+\\',
        }
        assert form.action == ENDPOINT
        assert form.method == 'POST'
        assert form.enctype == 'multipart/form-data'
        assert form.target.startswith('uploadframe-')
        assert file_input.name == 'file'
        assert form.field_names()[-1] == 'file'

    @pytest.mark.asyncio
    async def test_submit_waits_for_token(
        self, legacy_uploader, api_client, file_input, frame_host, make_document
    ):
        """Test the form is not submitted before the token arrives."""
        frame_host.responses.append(make_document(SUCCESS))
        release = asyncio.Event()

        async def slow_token(token_type):
            await release.wait()
            return 'late-token'

        api_client.get_token.side_effect = slow_token

        task = asyncio.ensure_future(
            legacy_uploader.upload(file_input, {'filename': 'Example.png'})
        )
        await _settle()

        assert frame_host.submitted == []
        assert len(frame_host.elements) == 2

        release.set()
        result = await task

        assert result == SUCCESS
        assert ('token', 'late-token') in frame_host.submitted[0].fields

    @pytest.mark.asyncio
    async def test_token_failure(self, legacy_uploader, api_client, file_input, frame_host):
        """Test nothing is submitted and the frame is removed."""
        api_client.get_token.side_effect = MWAPIError('notoken')

        with pytest.raises(TokenAcquisitionError):
            await legacy_uploader.upload(file_input, {'filename': 'Example.png'})

        assert frame_host.submitted == []
        assert frame_host.elements == ()
        assert len(frame_host.detach_calls) == 1

    @pytest.mark.asyncio
    async def test_late_frame_error_after_token_failure(
        self, legacy_uploader, api_client, file_input, frame_host
    ):
        """Test frame events after cleanup reach no handler."""
        api_client.get_token.side_effect = MWAPIError('notoken')

        with pytest.raises(TokenAcquisitionError):
            await legacy_uploader.upload(file_input, {'filename': 'Example.png'})

        _, frame = frame_host.detach_calls[0]
        assert frame.listener_count('load') == 0
        assert frame.listener_count('error') == 0
        frame.fail('late failure')
        await _settle()

    @pytest.mark.asyncio
    async def test_blank_load_alone_never_resolves(
        self, legacy_uploader, file_input, frame_host
    ):
        """Test the upload keeps waiting until the response loads."""
        frame_host.respond = False

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(
                legacy_uploader.upload(file_input, {'filename': 'Example.png'}),
                timeout=0.1
            )

        assert len(frame_host.submitted) == 1
        assert len(frame_host.detach_calls) == 1
        assert frame_host.elements == ()
        await frame_host.close()

    @pytest.mark.asyncio
    async def test_bad_token(
        self, legacy_uploader, api_client, file_input, frame_host, make_document
    ):
        """Test badtoken invalidates the cached token once."""
        error = {'code': 'badtoken', 'info': 'Invalid CSRF token.'}
        frame_host.responses.append(make_document({'error': error}))

        with pytest.raises(ServerRejectedError) as exc_info:
            await legacy_uploader.upload(file_input, {'filename': 'Example.png'})

        assert exc_info.value.payload == error
        api_client.bad_token.assert_called_once_with('csrf')
        _assert_torn_down(frame_host)

    @pytest.mark.asyncio
    async def test_other_error_keeps_token(
        self, legacy_uploader, api_client, file_input, frame_host, make_document
    ):
        """Test other errors leave the token cache alone."""
        frame_host.responses.append(make_document({'error': {'code': 'fileexists-no-change'}}))

        with pytest.raises(ServerRejectedError):
            await legacy_uploader.upload(file_input, {'filename': 'Example.png'})

        api_client.bad_token.assert_not_called()
        _assert_torn_down(frame_host)

    @pytest.mark.asyncio
    async def test_warnings_reject(self, legacy_uploader, file_input, frame_host, make_document):
        """Test warnings fail frame uploads as well."""
        warnings = {'duplicate': ['Other.png']}
        frame_host.responses.append(make_document({'warnings': warnings}))

        with pytest.raises(ServerRejectedError) as exc_info:
            await legacy_uploader.upload(file_input, {'filename': 'Example.png'})

        assert exc_info.value.payload == warnings
        _assert_torn_down(frame_host)

    @pytest.mark.asyncio
    async def test_empty_response(self, legacy_uploader, file_input, frame_host):
        """Test a body without a result is an empty response."""
        frame_host.responses.append(
            FrameDocument.from_response(ENDPOINT, 'text/html', '<html><body></body></html>')
        )

        with pytest.raises(EmptyResponseError, match="No response from API"):
            await legacy_uploader.upload(file_input, {'filename': 'Example.png'})

        _assert_torn_down(frame_host)

    @pytest.mark.asyncio
    async def test_empty_json_object(self, legacy_uploader, file_input, frame_host, make_document):
        """Test an empty JSON object is an empty response."""
        frame_host.responses.append(make_document({}))

        with pytest.raises(EmptyResponseError):
            await legacy_uploader.upload(file_input, {'filename': 'Example.png'})

    @pytest.mark.asyncio
    async def test_xml_response(self, legacy_uploader, file_input, frame_host):
        """Test an XML response is returned as the document root."""
        frame_host.responses.append(FrameDocument.from_response(
            ENDPOINT, 'text/xml', '<api><upload result="Success" filename="Example.png"/></api>'
        ))

        result = await legacy_uploader.upload(file_input, {'filename': 'Example.png'})

        assert isinstance(result, ElementTree.Element)
        assert result.find('upload').get('result') == 'Success'

    @pytest.mark.asyncio
    async def test_unrendered_document(self, legacy_uploader, file_input, frame_host):
        """Test a document with neither XML nor body is returned as is."""
        document = FrameDocument.from_response(ENDPOINT, 'application/octet-stream', '...')
        frame_host.responses.append(document)

        result = await legacy_uploader.upload(file_input, {'filename': 'Example.png'})

        assert result is document

    @pytest.mark.asyncio
    async def test_frame_error(self, legacy_uploader, file_input, frame_host):
        """Test a failed navigation fails the upload."""
        frame_host.fetch_error = aiohttp.ClientConnectionError("connection reset")

        with pytest.raises(FrameLoadError, match="connection reset"):
            await legacy_uploader.upload(file_input, {'filename': 'Example.png'})

        assert len(frame_host.detach_calls) == 1

    @pytest.mark.asyncio
    async def test_concurrent_uploads_use_distinct_frames(
        self, legacy_uploader, local_file, frame_host, make_document
    ):
        """Test parallel uploads never share a frame."""
        frame_host.responses.extend(make_document(SUCCESS) for _ in range(3))

        await asyncio.gather(*(
            legacy_uploader.upload(FileInput.from_path(local_file), {'filename': f'{i}.png'})
            for i in range(3)
        ))

        targets = [form.target for form in frame_host.submitted]
        assert len(set(targets)) == 3
        assert len(frame_host.detach_calls) == 3
        assert frame_host.elements == ()


def test_frame_names_increase():
    """Test each name takes the next counter value."""
    first = next_frame_name()
    second = next_frame_name()

    assert first.startswith('uploadframe-')
    assert int(second.rsplit('-', 1)[1]) == int(first.rsplit('-', 1)[1]) + 1
