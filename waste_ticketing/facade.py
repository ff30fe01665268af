"""
This module defines the central facade for the waste tracking application.
"""

import logging
import sqlite3
from dataclasses import asdict
from datetime import date, datetime, timezone
from typing import Any, Mapping, Optional, Union

from .exceptions import SubmissionError
from .images import DEFAULT_MIME_TYPE
from .models import Location, TicketStatus, WasteTicket
from .services.identity_service import IdentityService
from .services.persistence_service import PersistenceService
from .services.submission_service import SubmissionService
from .services.ticket_store import TicketStore
from .views import (
    classification_summary,
    daily_progress,
    eco_badges,
    recent_tickets,
    sort_by_recency,
    stage_progress,
    status_counts,
)

logger = logging.getLogger(__name__)


class WasteTrackingFacade:
    """
    The central entry point for the waste tracking application.
    It orchestrates the various services for the citizen, collector and
    municipality dashboards.
    """

    def __init__(
        self,
        ticket_store: TicketStore,
        submission_service: SubmissionService,
        identity_service: IdentityService,
        persistence_service: PersistenceService,
    ):
        self.ticket_store = ticket_store
        self.submission_service = submission_service
        self.identity_service = identity_service
        self.persistence_service = persistence_service

    def reload(self) -> None:
        """
        Re-reads the saved tickets and eco point totals, picking up changes made
        by other processes. On a database error the in-memory state is kept.
        """
        try:
            self.ticket_store.load()
            self.identity_service.load()
        except sqlite3.Error:
            logger.exception("Failed to reload saved state; serving what is in memory.")

    # --- Commands ---

    async def submit_waste(
        self,
        citizen_id: str,
        image_bytes: bytes,
        mime_type: str = DEFAULT_MIME_TYPE,
        location: Union[Location, Mapping[str, Any], None] = None,
    ) -> WasteTicket:
        """
        Submits a waste photo for a citizen.

        Raises:
            SubmissionError: If the submission fails; the user should retry.
        """
        try:
            return await self.submission_service.submit(
                citizen_id, image_bytes, mime_type=mime_type, location=location
            )
        except SubmissionError as e:
            logger.warning(f"Submission failed for citizen {citizen_id}: {e}")
            raise

    def mark_collected(
        self, waste_id: str, collector_id: str, proof_image_url: Optional[str] = None
    ) -> Optional[WasteTicket]:
        """Records a pickup. Returns the updated ticket, or None for an unknown waste ID."""
        self.ticket_store.update_ticket_status(
            waste_id, TicketStatus.COLLECTED, collector_id, proof_image_url
        )
        return self.ticket_store.get_ticket_by_waste_id(waste_id)

    def mark_recycled(
        self, waste_id: str, proof_image_url: Optional[str] = None
    ) -> Optional[WasteTicket]:
        """Records recycling completion. Returns the updated ticket, or None for an unknown waste ID."""
        self.ticket_store.update_ticket_status(
            waste_id, TicketStatus.RECYCLED, proof_image_url=proof_image_url
        )
        return self.ticket_store.get_ticket_by_waste_id(waste_id)

    # --- Queries ---

    def get_ticket(self, waste_id: str) -> Optional[WasteTicket]:
        return self.ticket_store.get_ticket_by_waste_id(waste_id)

    def get_ticket_display(self, waste_id: str) -> Optional[dict]:
        """Everything the ticket card shows, or None for an unknown waste ID."""
        ticket = self.ticket_store.get_ticket_by_waste_id(waste_id)
        if ticket is None:
            return None
        return {
            "ticket": ticket.to_dict(),
            "classification": classification_summary(ticket.classification),
            "stages": [asdict(stage) for stage in stage_progress(ticket)],
        }

    def get_citizen_dashboard(self, citizen_id: str) -> dict:
        """Retrieves a citizen's history, counts and badges."""
        try:
            tickets = self.ticket_store.get_tickets_by_user(citizen_id)
            user = self.identity_service.get_user(citizen_id)
            eco_points = user.eco_points if user else 0
            return {
                "eco_points": eco_points,
                "counts": status_counts(tickets),
                "badges": [asdict(badge) for badge in eco_badges(tickets, eco_points)],
                "history": [ticket.to_dict() for ticket in sort_by_recency(tickets)],
            }
        except Exception as e:
            logger.exception(f"Failed to build dashboard for citizen {citizen_id}.")
            return {"eco_points": 0, "counts": {}, "badges": [], "history": [], "error": str(e)}

    def get_collector_dashboard(self, collector_id: str, day: Optional[date] = None) -> dict:
        """Retrieves the pickup queue and a collector's progress for the day."""
        day = day or datetime.now(timezone.utc).date()
        try:
            tickets = self.ticket_store.tickets
            progress = daily_progress(tickets, collector_id, day)
            pending = [t.to_dict() for t in tickets if t.status == TicketStatus.PENDING]
            return {"pending": pending, "progress": asdict(progress)}
        except Exception as e:
            logger.exception(f"Failed to build dashboard for collector {collector_id}.")
            return {"pending": [], "progress": None, "error": str(e)}

    def get_municipality_dashboard(self) -> dict:
        """Retrieves aggregate status, recent activity and logs for the dashboard."""
        try:
            tickets = self.ticket_store.tickets
            with self.persistence_service as p:
                logs = p.get_all_logs()
            return {
                "counts": status_counts(tickets),
                "recent": [
                    dict(ticket.to_dict(), summary=classification_summary(ticket.classification))
                    for ticket in recent_tickets(tickets)
                ],
                "locations": [
                    {"wasteId": t.waste_id, "status": t.status, **t.location.to_dict()}
                    for t in tickets
                    if t.location is not None
                ],
                "logs": logs,
            }
        except Exception as e:
            logger.exception("Failed to retrieve dashboard data.")
            return {
                "counts": {},
                "recent": [],
                "locations": [],
                "logs": [],
                "error": str(e),
            }
