"""
This module defines the CodeImageService for rendering scannable ticket codes.
"""

import base64
import logging
from io import BytesIO

import qrcode
from qrcode.exceptions import DataOverflowError

from ..config import (
    QR_CODE_DARK_COLOR,
    QR_CODE_LIGHT_COLOR,
    QR_CODE_MARGIN,
    QR_CODE_WIDTH,
)
from ..exceptions import CodeImageError

logger = logging.getLogger(__name__)


class CodeImageService:
    """Encodes text, typically a wasteId, as a QR code PNG data URL."""

    def encode(
        self,
        text: str,
        width: int = QR_CODE_WIDTH,
        margin: int = QR_CODE_MARGIN,
        dark: str = QR_CODE_DARK_COLOR,
        light: str = QR_CODE_LIGHT_COLOR,
    ) -> str:
        """
        Renders a QR code for the given text.

        Args:
            text: The content to encode.
            width: Approximate width of the image in pixels.
            margin: Quiet zone around the code, in modules.
            dark: Colour of the code modules.
            light: Background colour.

        Returns:
            A "data:image/png;base64,..." URL.

        Raises:
            CodeImageError: If the text cannot be encoded or the image cannot be rendered.
        """
        if not text:
            raise CodeImageError("Cannot encode an empty QR code payload.")
        try:
            qr = qrcode.QRCode(border=margin)
            qr.add_data(text)
            qr.make(fit=True)
            qr.box_size = max(1, width // (qr.modules_count + 2 * margin))
            image = qr.make_image(fill_color=dark, back_color=light)
            buffer = BytesIO()
            image.save(buffer)
        except (DataOverflowError, ValueError, OSError) as e:
            raise CodeImageError(f"Error generating QR code for {text}: {e}") from e

        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
        logger.debug(f"Generated QR code for {text}.")
        return f"data:image/png;base64,{encoded}"
