"""Pytest fixtures for mwupload tests."""
import asyncio
import json

import pytest
from unittest.mock import AsyncMock, Mock

from mwupload.core.api import APIConfig
from mwupload.core.upload import (
    BinaryFile,
    FileInput,
    FrameDocument,
    FrameHost,
    UploadFacade,
    Environment,
)

ENDPOINT = 'https://wiki.example.org/w/api.php'


class FakeFrameHost(FrameHost):
    """Frame host that answers form submissions from a response list."""

    def __init__(self):
        super().__init__()
        self.responses = []
        self.submitted = []
        self.detach_calls = []
        self.fetch_error = None
        self.respond = True

    def detach(self, *elements):
        self.detach_calls.append(elements)
        super().detach(*elements)

    async def fetch(self, form):
        self.submitted.append(form)
        if self.fetch_error is not None:
            raise self.fetch_error
        if not self.respond:
            await asyncio.Event().wait()
        return self.responses.pop(0)


def json_document(payload):
    """Frame document for a JSON API response."""
    return FrameDocument.from_response(ENDPOINT, 'application/json', json.dumps(payload))


@pytest.fixture
def api_client():
    """Mocked API client."""
    client = Mock()
    client.config = APIConfig.for_endpoint(ENDPOINT)
    client.defaults = {'action': 'query', 'format': 'json'}
    client.get_token = AsyncMock(return_value='token+\\')
    client.bad_token = Mock()
    client.post = AsyncMock(
        return_value={'upload': {'result': 'Success', 'filename': 'Example.png'}}
    )
    return client


@pytest.fixture
def frame_host():
    """Frame host without network access."""
    return FakeFrameHost()


@pytest.fixture
def uploader(api_client, frame_host):
    """Upload facade with every capability available."""
    return UploadFacade(api_client, frame_host=frame_host)


@pytest.fixture
def legacy_uploader(api_client, frame_host):
    """Upload facade restricted to frame uploads."""
    return UploadFacade(api_client, environment=Environment.legacy(), frame_host=frame_host)


@pytest.fixture
def make_document():
    """Factory for frame documents holding a JSON response."""
    return json_document


@pytest.fixture
def blob():
    """In-memory file."""
    return BinaryFile.from_bytes(b"\x89PNG fake image data", "Example.png")


@pytest.fixture
def local_file(tmp_path):
    """File on disk with known content."""
    path = tmp_path / "Example.png"
    path.write_bytes(b"0123456789ABCDEFGHIJ")
    return path


@pytest.fixture
def file_input(local_file):
    """File control with a selected file."""
    return FileInput.from_path(local_file)
