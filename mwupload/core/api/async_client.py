"""
Async MediaWiki API client.

Fully asynchronous client with comprehensive configuration support.
"""
import json
import logging
import asyncio
from typing import Dict, Optional, Any, Callable, Mapping
import aiohttp

from .config import APIConfig
from .errors import MWAPIError, APIConnectionError
from ..logging import get_logger, truncate

UploadProgressCallback = Callable[[int, int], None]


def preprocess_parameters(params: Mapping[str, Any]) -> Dict[str, str]:
    """
    Convert parameter values to their wire form.

    Lists and tuples are joined with ``|``, ``True`` becomes ``"1"``;
    ``False`` and ``None`` drop the parameter, since the API treats any
    present boolean parameter as true.
    """
    result = {}
    for key, value in params.items():
        if value is None or value is False:
            continue
        if value is True:
            result[key] = '1'
        elif isinstance(value, (list, tuple)):
            result[key] = '|'.join(str(item) for item in value)
        else:
            result[key] = str(value)
    return result


class AsyncAPIClient:
    """
    Asynchronous MediaWiki Action API client.

    Features:
    - Full async/await support
    - Configurable proxy, SSL, timeouts
    - Retry with exponential backoff on maxlag/readonly
    - Connection pooling and a shared cookie jar
    - Token cache (csrf, login, ...)
    - Multipart uploads with progress reporting

    Example:
        >>> config = APIConfig.for_endpoint("https://test.wikipedia.org/w/api.php")
        >>> async with AsyncAPIClient(config) as client:
        ...     token = await client.get_token('csrf')
    """

    def __init__(self, config: Optional[APIConfig] = None):
        """
        Initialize async API client.

        Args:
            config: API configuration (uses defaults if not provided)
        """
        self._config = config or APIConfig.default()
        self._session: Optional[aiohttp.ClientSession] = None
        self._connector: Optional[aiohttp.TCPConnector] = None
        self._tokens: Dict[str, str] = {}
        self._closed = False

        self._logger = get_logger('mwupload.api')
        root_logger = logging.getLogger()
        if not root_logger.handlers:
            self._logger.setLevel(self._config.log_level)

    @property
    def config(self) -> APIConfig:
        """Get current configuration."""
        return self._config

    @property
    def defaults(self) -> Dict[str, Any]:
        """Default parameters merged into every request."""
        return self._config.default_parameters()

    async def __aenter__(self) -> 'AsyncAPIClient':
        """Async context manager entry."""
        await self.get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def get_session(self) -> aiohttp.ClientSession:
        """Ensure session is created and open."""
        if self._closed:
            raise APIConnectionError("Client is closed")

        if self._session is None or self._session.closed:
            self._connector = aiohttp.TCPConnector(
                **self._config.connector_kwargs()
            )
            self._session = aiohttp.ClientSession(
                connector=self._connector,
                **self._config.session_kwargs()
            )
        return self._session

    async def close(self):
        """Close client and release resources."""
        self._closed = True

        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

        if self._connector and not self._connector.closed:
            await self._connector.close()
            self._connector = None

    # Requests

    async def get(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Perform a GET request with the default parameters merged in."""
        return await self.request('GET', params)

    async def post(
        self,
        params: Mapping[str, Any],
        files: Optional[Mapping[str, Any]] = None,
        upload_progress: Optional[UploadProgressCallback] = None
    ) -> Dict[str, Any]:
        """
        Perform a POST request with the default parameters merged in.

        Args:
            params: Request parameters
            files: Field name -> BinaryFile; switches to multipart encoding
            upload_progress: Called with (bytes_sent, bytes_total) while
                the file body is streamed

        Returns:
            Decoded response
        """
        return await self.request('POST', params, files, upload_progress)

    async def request(
        self,
        method: str,
        params: Mapping[str, Any],
        files: Optional[Mapping[str, Any]] = None,
        upload_progress: Optional[UploadProgressCallback] = None,
        retry_count: int = 0
    ) -> Dict[str, Any]:
        """
        Make a request to the API.

        Args:
            method: 'GET' or 'POST'
            params: Request parameters (merged over the defaults)
            files: Optional multipart file fields (POST only)
            upload_progress: Optional byte progress callback
            retry_count: Current retry attempt (internal use)

        Returns:
            Decoded JSON response

        Raises:
            MWAPIError: If the response carries an error
            APIConnectionError: If the request fails at network level
        """
        session = await self.get_session()
        merged = preprocess_parameters({**self.defaults, **params})

        request_kwargs: Dict[str, Any] = self._config.proxy_kwargs()
        if method == 'GET':
            request_kwargs['params'] = merged
        elif files:
            request_kwargs['data'] = self._build_form_data(merged, files, upload_progress)
        else:
            request_kwargs['data'] = merged

        self._logger.debug(
            f"{method} {self._config.endpoint} action={merged.get('action')}"
        )
        self._logger.debug(f"Request data: {truncate(json.dumps(_redact(merged)))}")

        try:
            async with session.request(method, self._config.endpoint, **request_kwargs) as response:
                response_text = await response.text()
                self._logger.debug(f"Response data: {truncate(response_text, 1000)}")
                retry_after = response.headers.get('Retry-After')
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._logger.error(f"Network error: {e}")

            if method == 'GET' and retry_count < self._config.retry.max_retries:
                delay = self._config.retry.calculate_delay(retry_count)
                await asyncio.sleep(delay)
                return await self.request(method, params, files, upload_progress, retry_count + 1)

            raise APIConnectionError(f"Network error: {e}") from e

        result = self._parse_response(response_text)

        if 'error' in result:
            error = MWAPIError.from_response(result)
            if self._should_retry(error.code, retry_count):
                delay = self._config.retry.calculate_delay(
                    retry_count, _parse_retry_after(retry_after)
                )
                self._logger.warning(
                    f"Retrying after error {error.code}, attempt {retry_count + 1}"
                )
                await asyncio.sleep(delay)
                return await self.request(method, params, files, upload_progress, retry_count + 1)
            raise error

        return result

    def _build_form_data(
        self,
        params: Mapping[str, str],
        files: Mapping[str, Any],
        upload_progress: Optional[UploadProgressCallback]
    ) -> aiohttp.FormData:
        """Build a multipart body; file bodies are streamed in slices."""
        form = aiohttp.FormData()
        for key, value in params.items():
            form.add_field(key, value)
        for key, file in files.items():
            form.add_field(
                key,
                file.iter_chunks(progress_callback=upload_progress),
                filename=file.name,
                content_type=file.content_type
            )
        return form

    def _parse_response(self, response_text: str) -> Dict[str, Any]:
        """Parse API response."""
        try:
            data = json.loads(response_text)
        except json.JSONDecodeError as e:
            raise APIConnectionError(f"Invalid JSON response: {e}") from e

        if not isinstance(data, dict):
            raise APIConnectionError(f"Unexpected response: {truncate(response_text)}")

        return data

    def _should_retry(self, error_code: str, retry_count: int) -> bool:
        """Check if should retry for given error."""
        return (
            error_code in self._config.retry.retry_on_codes and
            retry_count < self._config.retry.max_retries
        )

    # Tokens

    async def get_token(self, token_type: str = 'csrf') -> str:
        """
        Get a token of the given type, cached until ``bad_token``.

        Args:
            token_type: Token type ('csrf', 'login', ...)

        Returns:
            Token string
        """
        cached = self._tokens.get(token_type)
        if cached is not None:
            return cached

        result = await self.get({
            'action': 'query',
            'meta': 'tokens',
            'type': token_type
        })
        token = result.get('query', {}).get('tokens', {}).get(f'{token_type}token')
        if not token:
            raise MWAPIError('notoken', f"No {token_type} token in response", result)

        self._tokens[token_type] = token
        return token

    def bad_token(self, token_type: str = 'csrf') -> None:
        """Invalidate a cached token so the next ``get_token`` refetches it."""
        if self._tokens.pop(token_type, None) is not None:
            self._logger.warning(f"Invalidated cached {token_type} token")

    # Authentication

    async def login(self, username: str, password: str) -> Dict[str, Any]:
        """
        Log in with a bot password (``action=login``).

        Session cookies are kept in the client's cookie jar, so every
        later request, frame submissions included, is authenticated.

        Raises:
            MWAPIError: If the login is not successful
        """
        token = await self.get_token('login')
        result = await self.post({
            'action': 'login',
            'lgname': username,
            'lgpassword': password,
            'lgtoken': token
        })
        # Login tokens are single use
        self.bad_token('login')

        login = result.get('login', {})
        if login.get('result') != 'Success':
            raise MWAPIError(
                'loginfailed',
                login.get('reason') or login.get('result', 'Login failed'),
                result
            )

        # Tokens fetched anonymously are useless now
        self.bad_token('csrf')
        self._logger.info(f"Logged in as {login.get('lgusername', username)}")
        return login


def _redact(params: Mapping[str, str]) -> Dict[str, str]:
    return {
        key: ('<redacted>' if key in ('token', 'lgpassword', 'lgtoken') else value)
        for key, value in params.items()
    }


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None
