"""Tests for API configuration and proxy routing."""
import ssl

import pytest
import aiohttp
from unittest.mock import AsyncMock, Mock

from mwupload.core.api import APIConfig, AsyncAPIClient, ProxyConfig, SSLConfig, TimeoutConfig
from mwupload.core.upload import FrameHost, UploadFacade

ENDPOINT = 'https://wiki.example.org/w/api.php'
PROXY = 'http://proxy.local:3128'


class FakeResponse:
    """Async context manager standing in for an aiohttp response."""

    content_type = 'application/json'
    url = ENDPOINT
    headers = {}

    async def text(self, errors='strict'):
        return '{"query": {}}'

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class TestProxyConfig:
    """Test suite for ProxyConfig."""

    def test_url_only(self):
        assert ProxyConfig(PROXY).request_kwargs() == {'proxy': PROXY}

    def test_credentials_use_basic_auth(self):
        kwargs = ProxyConfig(PROXY, 'user', 'secret').request_kwargs()

        assert kwargs['proxy'] == PROXY
        assert kwargs['proxy_auth'] == aiohttp.BasicAuth('user', 'secret')


class TestSSLConfig:
    """Test suite for SSLConfig."""

    def test_verify_by_default(self):
        assert SSLConfig().connector_ssl() is True

    def test_no_verify(self):
        assert SSLConfig(verify=False).connector_ssl() is False

    def test_ca_file(self, monkeypatch):
        context = ssl.create_default_context()
        calls = []

        def fake_context(cafile=None):
            calls.append(cafile)
            return context

        monkeypatch.setattr(ssl, 'create_default_context', fake_context)

        assert SSLConfig(ca_file='/etc/wiki-ca.pem').connector_ssl() is context
        assert calls == ['/etc/wiki-ca.pem']


class TestAPIConfig:
    """Test suite for APIConfig."""

    def test_defaults(self):
        config = APIConfig.default()

        assert config.endpoint == 'https://commons.wikimedia.org/w/api.php'
        assert config.default_parameters() == {'action': 'query', 'format': 'json'}
        assert config.proxy_kwargs() == {}

    def test_session_kwargs(self):
        config = APIConfig.for_endpoint(
            ENDPOINT,
            extra_headers={'X-Test': '1'},
            timeout=TimeoutConfig(total=60)
        )

        kwargs = config.session_kwargs()

        assert kwargs['headers'] == {'User-Agent': 'mwupload/1.0.0', 'X-Test': '1'}
        assert kwargs['timeout'].total == 60

    def test_connector_kwargs(self):
        config = APIConfig.for_endpoint(ENDPOINT, ssl=SSLConfig(verify=False))

        assert config.connector_kwargs() == {'limit_per_host': 10, 'ssl': False}


class TestProxyRouting:
    """Both transports send their requests through the configured proxy."""

    @pytest.mark.asyncio
    async def test_api_requests_use_proxy(self):
        session = Mock()
        session.request = Mock(return_value=FakeResponse())
        client = AsyncAPIClient(APIConfig.for_endpoint(ENDPOINT, proxy=ProxyConfig(PROXY)))
        client.get_session = AsyncMock(return_value=session)

        await client.get({'meta': 'siteinfo'})

        assert session.request.call_args.kwargs['proxy'] == PROXY

    @pytest.mark.asyncio
    async def test_frame_submissions_use_proxy(self):
        session = Mock()
        session.request = Mock(return_value=FakeResponse())
        host = FrameHost(AsyncMock(return_value=session), proxy=ProxyConfig(PROXY, 'u', 'p'))
        form = host.create_form(ENDPOINT, 'uploadframe-x')

        await host.fetch(form)

        kwargs = session.request.call_args.kwargs
        assert kwargs['proxy'] == PROXY
        assert kwargs['proxy_auth'] == aiohttp.BasicAuth('u', 'p')

    @pytest.mark.asyncio
    async def test_frame_submissions_without_proxy(self):
        session = Mock()
        session.request = Mock(return_value=FakeResponse())
        host = FrameHost(AsyncMock(return_value=session))

        await host.fetch(host.create_form(ENDPOINT, 'uploadframe-x'))

        assert 'proxy' not in session.request.call_args.kwargs

    def test_default_frame_host_gets_client_proxy(self, api_client):
        api_client.config = APIConfig.for_endpoint(ENDPOINT, proxy=ProxyConfig(PROXY))

        facade = UploadFacade(api_client)

        assert facade.frame_host._proxy is api_client.config.proxy
