"""
mwupload - Async Python client for MediaWiki file uploads.

Usage:
    >>> from mwupload import WikiClient
    >>>
    >>> async with WikiClient("https://test.wikipedia.org/w/api.php") as wiki:
    ...     await wiki.login("Example@uploadbot", "bot-password")
    ...     finish = await wiki.upload_to_stash("draft.png", filename="Draft.png")
    ...     result = await finish({'filename': 'Final.png'})
"""
import logging
from .client import WikiClient

# Configuration
from .core.api import (
    APIConfig,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    RetryConfig,
    AsyncAPIClient,
    MWAPIError,
    APIConnectionError,
)

# Uploads
from .core.upload import (
    UploadFacade,
    StashFinisher,
    Environment,
    BinaryFile,
    FileInput,
    TransportResult,
    ALLOWED_FIELDS,
)

from .core.exceptions import (
    UploadError,
    NoFileSelectedError,
    UnsupportedArgumentError,
    MissingFilenameError,
    TokenAcquisitionError,
    FrameLoadError,
    EmptyResponseError,
    ServerRejectedError,
    TransportFailureError,
)

__version__ = '1.0.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for mwupload modules.

    Args:
        level: Logging level (default: logging.INFO)
    """
    loggers = [
        'mwupload',
        'mwupload.api',
        'mwupload.client',
        'mwupload.upload',
        'mwupload.upload.token',
        'mwupload.upload.form_data',
        'mwupload.upload.iframe',
        'mwupload.upload.frames',
        'mwupload.upload.stash',
    ]

    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True


__all__ = [
    'WikiClient',
    'UploadFacade',
    'StashFinisher',
    'Environment',
    'BinaryFile',
    'FileInput',
    'TransportResult',
    'ALLOWED_FIELDS',
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'RetryConfig',
    'AsyncAPIClient',
    'MWAPIError',
    'APIConnectionError',
    'UploadError',
    'NoFileSelectedError',
    'UnsupportedArgumentError',
    'MissingFilenameError',
    'TokenAcquisitionError',
    'FrameLoadError',
    'EmptyResponseError',
    'ServerRejectedError',
    'TransportFailureError',
    'setup_logging',
]
