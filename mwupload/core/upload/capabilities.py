"""
Environment capability detection.

Decides whether the structured multipart transport can be used. It needs
three things from the environment: a form-data builder, a binary file type,
and the ability to slice that file type.
"""
from dataclasses import dataclass
from typing import Optional

import aiohttp

from .models import BinaryFile


@dataclass(frozen=True)
class Environment:
    """
    What the running environment offers for building upload requests.

    Attributes:
        form_data: Multipart form-data builder class, or None
        file_type: Binary file class handed to the multipart transport,
            or None
    """
    form_data: Optional[type] = aiohttp.FormData
    file_type: Optional[type] = BinaryFile

    @classmethod
    def default(cls) -> 'Environment':
        """Environment with every capability available."""
        return cls()

    @classmethod
    def legacy(cls) -> 'Environment':
        """Environment that only supports frame form submission."""
        return cls(form_data=None, file_type=None)


def form_data_available(environment: Environment) -> bool:
    """True if the multipart transport is usable in ``environment``."""
    return (
        environment.form_data is not None and
        environment.file_type is not None and
        getattr(environment.file_type, 'slice', None) is not None
    )
