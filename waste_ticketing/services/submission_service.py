"""
This module defines the SubmissionService, the citizen's photo -> ticket workflow.
"""

import logging
from typing import Any, Mapping, Union

from ..exceptions import SubmissionError
from ..images import DEFAULT_MIME_TYPE, to_data_url
from ..models import Location, WasteTicket
from ..tasks import resolve_with_fallback, run_blocking
from .classification_service import ClassificationService
from .ticket_store import TicketStore

logger = logging.getLogger(__name__)


class SubmissionService:
    """Classifies a waste photo and files a ticket for it."""

    def __init__(self, ticket_store: TicketStore, classification_service: ClassificationService):
        self.ticket_store = ticket_store
        self.classification_service = classification_service

    async def submit(
        self,
        citizen_id: str,
        image_bytes: bytes,
        mime_type: str = DEFAULT_MIME_TYPE,
        location: Union[Location, Mapping[str, Any], None] = None,
    ) -> WasteTicket:
        """
        Runs the full submission workflow:
        1. Classifies the image; an unavailable classifier leaves the ticket unclassified.
        2. Creates the ticket with the image embedded as a data URL.

        Raises:
            SubmissionError: If the workflow fails outright; the caller should
                let the user retry.
        """
        if not citizen_id or not image_bytes:
            raise SubmissionError("A signed-in citizen and an image are required.")

        try:
            classification = await resolve_with_fallback(
                run_blocking(self.classification_service.classify, image_bytes, mime_type=mime_type),
                None,
                f"Classification for citizen {citizen_id}",
            )
            ticket = await self.ticket_store.create_waste_ticket(
                citizen_id,
                to_data_url(image_bytes, mime_type),
                classification=classification,
                location=location,
            )
        except Exception as e:
            logger.exception(f"Waste submission failed for citizen {citizen_id}.")
            raise SubmissionError(f"Waste submission failed: {e}") from e

        logger.info(f"Citizen {citizen_id} submitted waste ticket {ticket.waste_id}.")
        return ticket
