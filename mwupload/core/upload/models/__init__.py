"""Upload models."""
from .upload_models import (
    BinaryFile,
    FileInput,
    UploadSource,
    UploadRequest,
    ResultKind,
    TransportResult,
    result_field,
    DEFAULT_CHUNK_SIZE,
)

__all__ = [
    'BinaryFile',
    'FileInput',
    'UploadSource',
    'UploadRequest',
    'ResultKind',
    'TransportResult',
    'result_field',
    'DEFAULT_CHUNK_SIZE',
]
