"""Headless frames and forms used by the frame upload transport."""
from .document import FrameDocument, parse_frame_result, BLANK_URL
from .host import Frame, HiddenForm, FrameHost

__all__ = [
    'FrameDocument',
    'parse_frame_result',
    'BLANK_URL',
    'Frame',
    'HiddenForm',
    'FrameHost',
]
