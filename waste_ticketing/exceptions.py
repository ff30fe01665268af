"""
This module defines custom exceptions for the waste ticketing core.
"""


class ClassificationError(Exception):
    """Custom exception for errors while calling the classification API."""

    pass


class CodeImageError(Exception):
    """Custom exception for errors while rendering a ticket's QR code."""

    pass


class SubmissionError(Exception):
    """Raised when the overall waste submission flow fails and should be retried."""

    pass
