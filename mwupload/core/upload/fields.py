"""
Upload field filtering.

Only a fixed set of ``action=upload`` parameters may be passed through by
callers; everything else is dropped before a request is built.
"""
from typing import Any, Dict, Mapping, Optional

ALLOWED_FIELDS = frozenset({
    'stash',
    'filekey',
    'filename',
    'comment',
    'text',
    'watchlist',
    'ignorewarnings',
})


def filter_fields(fields: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Return a copy of ``fields`` without keys outside ALLOWED_FIELDS."""
    if not fields:
        return {}
    return {key: value for key, value in fields.items() if key in ALLOWED_FIELDS}


def build_upload_params(
    fields: Optional[Mapping[str, Any]],
    defaults: Optional[Mapping[str, Any]] = None
) -> Dict[str, Any]:
    """
    Build the parameters of an upload request.

    Filtered fields override the defaults; ``action`` is always ``upload``.

    Args:
        fields: Caller supplied fields
        defaults: Default request parameters of the API client

    Returns:
        New parameter dict
    """
    return {
        **(defaults or {}),
        **filter_fields(fields),
        'action': 'upload',
    }


def has_target(fields: Mapping[str, Any]) -> bool:
    """True if the fields name a file or ask for a stash upload."""
    return bool(fields.get('filename') or fields.get('stash'))
