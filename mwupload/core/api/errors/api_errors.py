"""MediaWiki API error codes and exceptions."""
from typing import Dict, Any, Optional


class APIErrorCodes:
    """Well-known MediaWiki API error codes."""

    BAD_TOKEN = 'badtoken'
    MAXLAG = 'maxlag'
    READONLY = 'readonly'
    HTTP = 'http'

    ERROR_CODES: Dict[str, str] = {
        'badtoken': 'Invalid CSRF token.',
        'notoken': 'The token parameter must be set.',
        'maxlag': 'Waiting for a database server: replication lag too high.',
        'readonly': 'The wiki is currently in read-only mode.',
        'mustbeloggedin': 'You must be logged in to upload this file.',
        'permissiondenied': 'You do not have permission to upload files.',
        'fileexists-no-change': 'The upload is an exact duplicate of the current version.',
        'stashfailed': 'Could not store upload in the stash.',
        'http': 'HTTP request failed.',
    }

    @classmethod
    def get_message(cls, code: str) -> str:
        """Gets error message for error code."""
        return cls.ERROR_CODES.get(code, f"Unknown error: {code}")


class MWAPIError(Exception):
    """Exception raised for MediaWiki API errors."""

    def __init__(
        self,
        code: str,
        info: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None
    ):
        self.code = code
        self.info = info or APIErrorCodes.get_message(code)
        self.payload = payload or {'error': {'code': code, 'info': self.info}}
        super().__init__(f"{code}: {self.info}")

    @property
    def error(self) -> Dict[str, Any]:
        """Returns the ``error`` object of the response."""
        return self.payload.get('error', {'code': self.code, 'info': self.info})

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> 'MWAPIError':
        """Build from a decoded response that carries an ``error`` key."""
        error = payload.get('error') or {}
        return cls(
            error.get('code', 'unknown'),
            error.get('info'),
            payload
        )


class APIConnectionError(MWAPIError):
    """Exception raised when the API could not be reached or decoded."""

    def __init__(self, detail: str):
        super().__init__(APIErrorCodes.HTTP, detail)
