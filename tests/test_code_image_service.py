"""
Unit tests for the CodeImageService.
"""

import base64

import pytest

from waste_ticketing.exceptions import CodeImageError
from waste_ticketing.services.code_image_service import CodeImageService


def test_encode_returns_png_data_url():
    data_url = CodeImageService().encode("WTABC12345")

    assert data_url.startswith("data:image/png;base64,")
    png = base64.b64decode(data_url.split(",", 1)[1])
    assert png.startswith(b"\x89PNG\r\n\x1a\n")


def test_encode_rejects_empty_text():
    with pytest.raises(CodeImageError):
        CodeImageService().encode("")


def test_encode_rejects_oversized_payload():
    with pytest.raises(CodeImageError):
        CodeImageService().encode("x" * 10000)
