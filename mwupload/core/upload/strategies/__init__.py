"""Upload transports."""
from .form_data import FormDataTransport
from .iframe import IframeTransport, next_frame_name

__all__ = [
    'FormDataTransport',
    'IframeTransport',
    'next_frame_name',
]
