"""
Data models for upload module.

Uses dataclasses for immutable, type-safe data structures.
"""
import mimetypes
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, AsyncIterator, Callable, Dict, List, Mapping, Optional, Union
from xml.etree import ElementTree

import aiofiles

from ..fields import build_upload_params, filter_fields, has_target
from ...exceptions import MissingFilenameError, ServerRejectedError

DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class BinaryFile:
    """
    Binary file content to upload.

    Backed either by in-memory bytes or by a path on disk. ``start`` and
    ``end`` delimit the byte range of the source this object represents,
    which is how ``slice`` creates views without copying.

    Example:
        >>> blob = BinaryFile.from_bytes(b"0123456789", "digits.txt")
        >>> blob.slice(2, 5).size
        3
    """
    name: str
    data: Optional[bytes] = None
    path: Optional[Path] = None
    content_type: str = 'application/octet-stream'
    start: int = 0
    end: Optional[int] = None

    def __post_init__(self):
        if (self.data is None) == (self.path is None):
            raise ValueError("BinaryFile needs exactly one of data or path")
        if isinstance(self.path, str):
            object.__setattr__(self, 'path', Path(self.path))

    @classmethod
    def from_path(
        cls,
        path: Union[str, Path],
        content_type: Optional[str] = None
    ) -> 'BinaryFile':
        """Create a file backed by a local path."""
        path = Path(path)
        if content_type is None:
            content_type = mimetypes.guess_type(path.name)[0] or 'application/octet-stream'
        return cls(name=path.name, path=path, content_type=content_type)

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        name: str,
        content_type: Optional[str] = None
    ) -> 'BinaryFile':
        """Create a file backed by in-memory bytes."""
        if content_type is None:
            content_type = mimetypes.guess_type(name)[0] or 'application/octet-stream'
        return cls(name=name, data=bytes(data), content_type=content_type)

    def _source_size(self) -> int:
        if self.data is not None:
            return len(self.data)
        return self.path.stat().st_size

    @property
    def size(self) -> int:
        """Returns the number of bytes in this file (or slice)."""
        source_size = self._source_size()
        end = source_size if self.end is None else min(self.end, source_size)
        return max(0, end - self.start)

    def slice(self, start: int = 0, end: Optional[int] = None) -> 'BinaryFile':
        """
        Return a view of ``[start, end)`` relative to this file.

        Offsets are clamped to the file size.
        """
        size = self.size
        start = max(0, min(start, size))
        end = size if end is None else max(start, min(end, size))
        return replace(self, start=self.start + start, end=self.start + end)

    async def read(self) -> bytes:
        """Read the whole content of this file (or slice)."""
        size = self.size
        if self.data is not None:
            return self.data[self.start:self.start + size]

        async with aiofiles.open(self.path, 'rb') as f:
            await f.seek(self.start)
            return await f.read(size)

    async def iter_chunks(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        progress_callback: Optional[Callable[[int, int], None]] = None
    ) -> AsyncIterator[bytes]:
        """
        Yield the content slice by slice.

        ``progress_callback(loaded, total)`` runs once the consumer has taken
        a chunk and asks for the next one.
        """
        total = self.size
        loaded = 0
        for offset in range(0, total, chunk_size):
            chunk = await self.slice(offset, offset + chunk_size).read()
            loaded += len(chunk)
            yield chunk
            if progress_callback:
                progress_callback(loaded, total)


@dataclass
class FileInput:
    """
    Handle of a form file control with a user-selected local file.

    ``files`` lists the selection as BinaryFile objects; it stays None for
    handles that do not expose their selection.

    Example:
        >>> handle = FileInput.from_path("photo.jpg")
        >>> handle.files[0].name
        'photo.jpg'
    """
    path: Optional[Path] = None
    name: str = 'file'
    files: Optional[List[BinaryFile]] = None

    def __post_init__(self):
        if isinstance(self.path, str):
            self.path = Path(self.path)

    @classmethod
    def from_path(cls, path: Union[str, Path], name: str = 'file') -> 'FileInput':
        """Create a handle whose selection is the given path."""
        path = Path(path)
        return cls(path=path, name=name, files=[BinaryFile.from_path(path)])

    def selected_file(self) -> Optional[BinaryFile]:
        """The file the form control submits, read from its path."""
        if self.path is None:
            return None
        return BinaryFile.from_path(self.path)


UploadSource = Union[BinaryFile, FileInput]


@dataclass(frozen=True)
class UploadRequest:
    """
    A single upload call: the resolved file and its filtered fields.

    Built through ``build`` so the field filter always runs; the field
    mapping is read-only afterwards.
    """
    file: UploadSource
    fields: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        file: UploadSource,
        fields: Optional[Mapping[str, Any]] = None
    ) -> 'UploadRequest':
        """Create a request, dropping fields that are not allowed."""
        return cls(file=file, fields=MappingProxyType(filter_fields(fields)))

    @property
    def has_target(self) -> bool:
        """True if a filename or the stash flag is present."""
        return has_target(self.fields)

    def require_target(self) -> None:
        """
        Raises:
            MissingFilenameError: If neither filename nor stash is set
        """
        if not self.has_target:
            raise MissingFilenameError()

    def params(self, defaults: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Request parameters merged over the client defaults."""
        return build_upload_params(self.fields, defaults)


def _element_to_dict(element: ElementTree.Element) -> Dict[str, Any]:
    data: Dict[str, Any] = dict(element.attrib)
    for child in element:
        if len(child) or child.attrib:
            data[child.tag] = _element_to_dict(child)
        else:
            data[child.tag] = child.text or ''
    if not data:
        data['*'] = element.text or ''
    return data


def result_field(result: Any, name: str) -> Any:
    """
    Look up a top-level field of a parsed response.

    Handles decoded JSON objects and XML documents (``<api>`` root); any
    other result has no fields.
    """
    if isinstance(result, Mapping):
        return result.get(name)
    if isinstance(result, ElementTree.Element):
        child = result.find(name)
        return _element_to_dict(child) if child is not None else None
    return None


class ResultKind(Enum):
    """Outcome of parsing an upload response."""
    SUCCESS = 'success'
    WARNING = 'warning'
    FAILURE = 'failure'


@dataclass(frozen=True)
class TransportResult:
    """
    Normalized outcome of an upload response.

    Both transports classify the server's answer through ``from_payload``,
    so callers see the same shape whichever transport ran.

    Attributes:
        kind: SUCCESS, WARNING or FAILURE
        payload: Full response for SUCCESS, the warnings or error object
            otherwise
    """
    kind: ResultKind
    payload: Any

    @classmethod
    def from_payload(cls, payload: Any) -> 'TransportResult':
        """Classify a parsed server response."""
        error = result_field(payload, 'error')
        if error:
            return cls(ResultKind.FAILURE, error)

        warnings = result_field(payload, 'warnings')
        if warnings:
            return cls(ResultKind.WARNING, warnings)

        return cls(ResultKind.SUCCESS, payload)

    @property
    def ok(self) -> bool:
        """Returns True for SUCCESS."""
        return self.kind is ResultKind.SUCCESS

    @property
    def error_code(self) -> Optional[str]:
        """Server error code of a FAILURE, if any."""
        if self.kind is ResultKind.FAILURE and isinstance(self.payload, Mapping):
            return self.payload.get('code')
        return None

    def unwrap(self) -> Any:
        """
        Returns:
            The response payload

        Raises:
            ServerRejectedError: For WARNING and FAILURE results; warnings
                are rejected just like errors
        """
        if self.ok:
            return self.payload
        raise ServerRejectedError(self.payload)
