"""
This module defines the ClassificationService for calling the image classification API.
"""

import logging
from typing import Dict, Optional

import requests

from ..config import CLASSIFY_API_URL, CLASSIFY_TIMEOUT_SECONDS
from ..exceptions import ClassificationError
from ..models import parse_classification

logger = logging.getLogger(__name__)


class ClassificationService:
    """Turns a waste photo into a category -> count mapping."""

    def __init__(self, api_url: str = CLASSIFY_API_URL, timeout: float = CLASSIFY_TIMEOUT_SECONDS):
        self.api_url = api_url
        self.timeout = timeout

    def classify(
        self,
        image_bytes: bytes,
        filename: str = "camera-capture.jpg",
        mime_type: str = "image/jpeg",
    ) -> Optional[Dict[str, int]]:
        """
        Uploads an image and returns the detected waste categories.

        Args:
            image_bytes: The raw image.
            filename: The filename sent with the multipart upload.
            mime_type: The image's MIME type.

        Returns:
            The classification mapping, or None if the response carried no
            usable classification.

        Raises:
            ClassificationError: If the request fails or the body is not JSON.
        """
        files = {"file": (filename, image_bytes, mime_type)}
        try:
            response = requests.post(self.api_url, files=files, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except requests.exceptions.RequestException as e:
            raise ClassificationError(f"Error calling classification API: {e}") from e
        except ValueError as e:
            raise ClassificationError(f"Classification API returned invalid JSON: {e}") from e

        if not isinstance(body, dict):
            logger.warning("Classification API returned a non-object body.")
            return None

        classification = parse_classification(body.get("classification"))
        if classification is None:
            logger.warning("Classification API response had no usable classification.")
        else:
            logger.info(f"Image classified as {classification}.")
        return classification
