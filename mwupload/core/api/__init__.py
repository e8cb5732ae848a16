"""MediaWiki Action API module."""
from .errors import MWAPIError, APIConnectionError, APIErrorCodes
from .events import EventEmitter
from .config import APIConfig, ProxyConfig, SSLConfig, TimeoutConfig, RetryConfig
from .async_client import AsyncAPIClient, preprocess_parameters

__all__ = [
    # Async client
    'AsyncAPIClient',
    'preprocess_parameters',

    # Configuration
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'RetryConfig',

    # Errors
    'MWAPIError',
    'APIConnectionError',
    'APIErrorCodes',

    # Events
    'EventEmitter',
]
