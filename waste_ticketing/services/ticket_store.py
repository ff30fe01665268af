"""
This module defines the TicketStore, the single source of truth for waste tickets.
"""

import logging
import secrets
import sqlite3
import string
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Protocol, Set, Tuple, Union

from ..config import (
    DEFAULT_LOCATION_ADDRESS,
    DEFAULT_LOCATION_LAT,
    DEFAULT_LOCATION_LNG,
    TICKET_STORAGE_KEY,
)
from ..models import (
    RECYCLING_AWARD,
    SUBMISSION_AWARD,
    Location,
    TicketStatus,
    TicketTimestamps,
    WasteTicket,
    format_timestamp,
    parse_classification,
    status_rank,
)
from ..tasks import resolve_with_fallback, run_blocking
from .identity_service import PointsLedger
from .persistence_service import PersistenceService

logger = logging.getLogger(__name__)

WASTE_ID_PREFIX = "WT"
WASTE_ID_LENGTH = 8  # 36 ** 8 codes, a little over 41 bits
WASTE_ID_ALPHABET = string.digits + string.ascii_uppercase

DEFAULT_LOCATION = Location(
    lat=DEFAULT_LOCATION_LAT, lng=DEFAULT_LOCATION_LNG, address=DEFAULT_LOCATION_ADDRESS
)

Listener = Callable[["TicketStore"], None]


class CodeEncoder(Protocol):
    """Renders a scannable code image for a waste ID."""

    def encode(self, text: str) -> str:
        ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TicketStore:
    """
    Owns the ticket collection and the currently focused ticket.

    The collection is a tuple that is replaced, never mutated, on every change;
    tickets themselves are frozen dataclasses. Every mutation is persisted as a
    full snapshot (when persistence is configured) and then announced to
    subscribers.
    """

    def __init__(
        self,
        points_ledger: PointsLedger,
        code_encoder: CodeEncoder,
        persistence: Optional[PersistenceService] = None,
        storage_key: str = TICKET_STORAGE_KEY,
        default_location: Location = DEFAULT_LOCATION,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.points_ledger = points_ledger
        self.code_encoder = code_encoder
        self.persistence = persistence
        self.storage_key = storage_key
        self.default_location = default_location
        self.clock = clock
        self._tickets: Tuple[WasteTicket, ...] = ()
        self._current_ticket: Optional[WasteTicket] = None
        self._issued_waste_ids: Set[str] = set()
        self._listeners: List[Listener] = []

    @property
    def tickets(self) -> Tuple[WasteTicket, ...]:
        """All tickets, newest first."""
        return self._tickets

    @property
    def current_ticket(self) -> Optional[WasteTicket]:
        return self._current_ticket

    # --- Commands ---

    async def create_waste_ticket(
        self,
        citizen_id: str,
        image_source: str,
        classification: Any = None,
        location: Union[Location, Mapping[str, Any], None] = None,
    ) -> WasteTicket:
        """
        Creates a pending ticket for a submitted waste item and awards submission points.

        Args:
            citizen_id: The submitting citizen.
            image_source: Opaque image reference (URL or data URL).
            classification: Raw classification payload; unparsable or missing
                values leave the ticket unclassified.
            location: Where the item was submitted; defaults to the configured location.

        Returns:
            The created ticket, once its QR code has been rendered (or has failed).

        Raises:
            ValueError: If citizen_id is empty.
        """
        if not citizen_id:
            raise ValueError("citizen_id must not be empty.")

        waste_id = self._generate_waste_id()
        qr_code = await resolve_with_fallback(
            run_blocking(self.code_encoder.encode, waste_id),
            "",
            f"QR code generation for {waste_id}",
        )

        if isinstance(location, Mapping):
            location = Location.from_dict(location)

        ticket = WasteTicket(
            id=f"ticket-{uuid.uuid4().hex}",
            waste_id=waste_id,
            citizen_id=citizen_id,
            status=TicketStatus.PENDING,
            image_url=image_source,
            qr_code=qr_code,
            timestamps=TicketTimestamps(created=format_timestamp(self.clock())),
            eco_points_awarded=SUBMISSION_AWARD,
            classification=parse_classification(classification),
            location=location or self.default_location,
        )

        self._tickets = (ticket,) + self._tickets
        self._current_ticket = ticket
        self.points_ledger.credit(citizen_id, SUBMISSION_AWARD)
        logger.info(f"Created waste ticket {waste_id} for citizen {citizen_id}.")
        self._commit()
        return ticket

    def update_ticket_status(
        self,
        waste_id: str,
        new_status: str,
        collector_id: Optional[str] = None,
        proof_image_url: Optional[str] = None,
    ) -> None:
        """
        Moves a ticket forward in its lifecycle.

        Unknown waste IDs are ignored. Backward transitions are ignored. Re-applying
        the current status never re-stamps the timestamp nor awards points again.
        collector_id is kept from the first collected-or-later update that supplies
        it; proof_image_url is replaced whenever a new value is supplied.

        Raises:
            ValueError: If new_status is not a lifecycle state.
        """
        new_rank = status_rank(new_status)

        index = self._index_of(waste_id)
        if index is None:
            logger.debug(f"Ignoring status update for unknown waste ticket {waste_id}.")
            return

        ticket = self._tickets[index]
        current_rank = status_rank(ticket.status)
        if new_rank < current_rank:
            logger.warning(
                f"Ignoring backward transition of {waste_id} from {ticket.status} to {new_status}."
            )
            return

        changes = {}
        if new_rank > current_rank:
            changes["status"] = new_status
            changes["timestamps"] = replace(
                ticket.timestamps, **{new_status: self._stamp(ticket.timestamps)}
            )

        # A collector is only recorded once the ticket has reached collection
        reaches_collection = new_rank >= status_rank(TicketStatus.COLLECTED)
        if collector_id and reaches_collection and collector_id != ticket.collector_id:
            if ticket.collector_id:
                logger.warning(
                    f"Ticket {waste_id} already collected by {ticket.collector_id}; ignoring {collector_id}."
                )
            else:
                changes["collector_id"] = collector_id

        if proof_image_url and proof_image_url != ticket.proof_image_url:
            changes["proof_image_url"] = proof_image_url

        award = 0
        if new_status == TicketStatus.RECYCLED and ticket.eco_points_awarded < RECYCLING_AWARD:
            award = RECYCLING_AWARD - ticket.eco_points_awarded
            changes["eco_points_awarded"] = RECYCLING_AWARD

        if not changes:
            return

        updated = replace(ticket, **changes)
        self._tickets = self._tickets[:index] + (updated,) + self._tickets[index + 1:]
        if self._current_ticket is not None and self._current_ticket.waste_id == waste_id:
            self._current_ticket = updated

        if award:
            self.points_ledger.credit(ticket.citizen_id, award)
        logger.info(f"Ticket {waste_id} is now {updated.status}.")
        self._commit()

    def set_current_ticket(self, ticket: Optional[WasteTicket]) -> None:
        """Sets the ticket that display flows should focus on."""
        self._current_ticket = ticket
        self._commit()

    # --- Queries ---

    def get_tickets_by_user(self, citizen_id: str) -> List[WasteTicket]:
        """All tickets owned by the citizen, in collection order."""
        return [ticket for ticket in self._tickets if ticket.citizen_id == citizen_id]

    def get_ticket_by_waste_id(self, waste_id: str) -> Optional[WasteTicket]:
        index = self._index_of(waste_id)
        return self._tickets[index] if index is not None else None

    # --- Subscriptions ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Registers a listener called with the store after every mutation.

        Returns:
            A function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- Persistence ---

    def snapshot(self) -> dict:
        """The full store state in its serializable form."""
        return {
            "tickets": [ticket.to_dict() for ticket in self._tickets],
            "currentTicket": self._current_ticket.to_dict() if self._current_ticket else None,
        }

    def restore(self, snapshot: Mapping[str, Any]) -> None:
        """Replaces the store state wholesale. Malformed tickets are skipped."""
        tickets = []
        seen = set()
        for data in snapshot.get("tickets") or []:
            ticket = self._ticket_from_snapshot(data)
            if ticket is None:
                continue
            if ticket.waste_id in seen:
                logger.warning(f"Skipping duplicate waste ticket {ticket.waste_id} in snapshot.")
                continue
            seen.add(ticket.waste_id)
            tickets.append(ticket)
        self._tickets = tuple(tickets)
        self._issued_waste_ids.update(ticket.waste_id for ticket in tickets)

        current = None
        if snapshot.get("currentTicket"):
            current = self._ticket_from_snapshot(snapshot["currentTicket"])
            if current is not None:
                # Share identity with the collection entry when it is the same ticket
                held = self.get_ticket_by_waste_id(current.waste_id)
                if held == current:
                    current = held
        self._current_ticket = current

        logger.info(f"Restored {len(self._tickets)} waste tickets.")
        self._notify()

    def load(self) -> bool:
        """
        Restores the last persisted snapshot.

        Returns:
            True if a snapshot was found and restored.
        """
        if self.persistence is None:
            return False
        with self.persistence as p:
            snapshot = p.load_snapshot(self.storage_key)
        if snapshot is None:
            logger.info("No persisted waste tickets found.")
            return False
        self.restore(snapshot)
        return True

    # --- Internals ---

    def _generate_waste_id(self) -> str:
        while True:
            code = "".join(secrets.choice(WASTE_ID_ALPHABET) for _ in range(WASTE_ID_LENGTH))
            waste_id = f"{WASTE_ID_PREFIX}{code}"
            if waste_id not in self._issued_waste_ids:
                self._issued_waste_ids.add(waste_id)
                return waste_id

    def _index_of(self, waste_id: str) -> Optional[int]:
        for index, ticket in enumerate(self._tickets):
            if ticket.waste_id == waste_id:
                return index
        return None

    def _stamp(self, timestamps: TicketTimestamps) -> str:
        now = self.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        # Never earlier than what is already stamped, even if the clock steps back
        return format_timestamp(max(now, timestamps.latest()))

    @staticmethod
    def _ticket_from_snapshot(data: Any) -> Optional[WasteTicket]:
        try:
            return WasteTicket.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Skipping malformed ticket in snapshot: {e}")
            return None

    def _commit(self) -> None:
        self._persist()
        self._notify()

    def _persist(self) -> None:
        if self.persistence is None:
            return
        try:
            with self.persistence as p:
                p.save_snapshot(self.storage_key, self.snapshot())
        except sqlite3.Error:
            logger.exception("Failed to persist waste ticket snapshot.")

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("A ticket store listener failed.")
