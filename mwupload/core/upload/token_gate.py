"""
Token gate.

Attaches the CSRF token to mutating requests and drops a stale token from
the API client's cache when the server reports ``badtoken``. The failed
request is never retried here; the next caller-initiated attempt picks up
a fresh token.
"""
import asyncio
import logging
from typing import Any, Callable, Dict, Mapping, Optional

import aiohttp

from .protocols import ApiClientProtocol
from ..api.errors import MWAPIError, APIConnectionError, APIErrorCodes
from ..exceptions import (
    TokenAcquisitionError,
    ServerRejectedError,
    TransportFailureError,
)


class TokenGate:
    """
    Token handling for upload requests.

    Example:
        >>> gate = TokenGate(api_client)
        >>> result = await gate.post({'action': 'upload', 'filekey': key})
    """

    def __init__(self, api_client: ApiClientProtocol, token_type: str = 'csrf'):
        self._api = api_client
        self._token_type = token_type
        self._logger = logging.getLogger('mwupload.upload.token')

    @property
    def token_type(self) -> str:
        return self._token_type

    async def acquire(self) -> str:
        """
        Fetch the token from the API client.

        Raises:
            TokenAcquisitionError: If the token could not be obtained
        """
        try:
            return await self._api.get_token(self._token_type)
        except (MWAPIError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._logger.error(f"Could not get {self._token_type} token: {e}")
            raise TokenAcquisitionError(
                f"Could not get {self._token_type} token: {e}", e
            ) from e

    def report(self, error: Any) -> bool:
        """
        Inspect a server error; invalidate the cached token on ``badtoken``.

        Returns:
            True if the token was invalidated
        """
        if isinstance(error, Mapping) and error.get('code') == APIErrorCodes.BAD_TOKEN:
            self._logger.warning("Server rejected token, invalidating cache")
            self._api.bad_token(self._token_type)
            return True
        return False

    async def post(
        self,
        params: Mapping[str, Any],
        files: Optional[Mapping[str, Any]] = None,
        upload_progress: Optional[Callable[[int, int], None]] = None
    ) -> Dict[str, Any]:
        """
        POST ``params`` with a token attached.

        Raises:
            TokenAcquisitionError: If no token could be fetched
            ServerRejectedError: If the API answered with an error
            TransportFailureError: On network or decoding failures
        """
        token = await self.acquire()

        try:
            return await self._api.post(
                {**params, 'token': token},
                files=files,
                upload_progress=upload_progress
            )
        except APIConnectionError as e:
            raise TransportFailureError(str(e), e) from e
        except MWAPIError as e:
            self.report(e.error)
            raise ServerRejectedError(e.error) from e
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise TransportFailureError(f"Upload request failed: {e}", e) from e
