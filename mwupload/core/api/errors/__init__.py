"""MediaWiki API errors and exceptions."""
from .api_errors import MWAPIError, APIConnectionError, APIErrorCodes

__all__ = [
    'MWAPIError',
    'APIConnectionError',
    'APIErrorCodes',
]
