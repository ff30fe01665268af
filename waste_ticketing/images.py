"""
This module converts between raw image bytes and data URLs.

Camera captures arrive as data URLs; the classifier expects raw bytes.
"""

import base64
import binascii
from typing import Tuple

DEFAULT_MIME_TYPE = "image/jpeg"


def to_data_url(image_bytes: bytes, mime_type: str = DEFAULT_MIME_TYPE) -> str:
    """Encodes image bytes as a base64 data URL."""
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def data_url_to_bytes(data_url: str) -> Tuple[bytes, str]:
    """
    Decodes a base64 data URL.

    Returns:
        The image bytes and their MIME type.

    Raises:
        ValueError: If the string is not a base64 data URL.
    """
    header, sep, payload = data_url.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ValueError("Not a base64 data URL.")
    mime_type = header[len("data:"):-len(";base64")] or DEFAULT_MIME_TYPE
    try:
        return base64.b64decode(payload, validate=True), mime_type
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload in data URL: {e}") from e
