"""
Upload module for MediaWiki file uploads.

Picks between a multipart transport and a hidden frame transport depending
on the environment, and supports two-phase stash uploads.
"""
from .facade import UploadFacade
from .capabilities import Environment, form_data_available
from .fields import ALLOWED_FIELDS, filter_fields, build_upload_params
from .models import (
    BinaryFile,
    FileInput,
    UploadRequest,
    ResultKind,
    TransportResult,
)
from .stash import StashFinisher
from .strategies import FormDataTransport, IframeTransport
from .token_gate import TokenGate
from .frames import FrameHost, Frame, HiddenForm, FrameDocument
from .protocols import ApiClientProtocol, Transport

__all__ = [
    # Main classes
    'UploadFacade',
    'StashFinisher',
    'TokenGate',

    # Capabilities and fields
    'Environment',
    'form_data_available',
    'ALLOWED_FIELDS',
    'filter_fields',
    'build_upload_params',

    # Models
    'BinaryFile',
    'FileInput',
    'UploadRequest',
    'ResultKind',
    'TransportResult',

    # Transports
    'FormDataTransport',
    'IframeTransport',
    'FrameHost',
    'Frame',
    'HiddenForm',
    'FrameDocument',

    # Protocols
    'ApiClientProtocol',
    'Transport',
]
