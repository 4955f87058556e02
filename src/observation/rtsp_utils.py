"""
Helpers for logging stream URLs without leaking credentials.
"""

from __future__ import annotations

from typing import Union
from urllib.parse import urlparse, urlunparse


def sanitize_url(device_id: Union[int, str]) -> str:
    """
    Mask the password of a stream URL for log output.

    Camera indices and plain file paths are returned unchanged.
    """
    if not isinstance(device_id, str) or "://" not in device_id:
        return str(device_id)

    parsed = urlparse(device_id)
    if not parsed.password:
        return device_id

    netloc = f"{parsed.username}:***@{parsed.hostname}"
    if parsed.port:
        netloc += f":{parsed.port}"
    return urlunparse((
        parsed.scheme, netloc, parsed.path,
        parsed.params, parsed.query, parsed.fragment
    ))
