"""
This module holds the read-only transformations the dashboards render.

Nothing here touches the store; every function takes tickets (or a raw payload)
and returns new values.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .config import COLLECTOR_DAILY_TARGET
from .models import STATUS_ORDER, TicketStatus, WasteTicket, parse_classification, parse_timestamp

NOT_AVAILABLE = "not available"

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class StageProgress:
    """One step of the Submitted -> Collected -> Recycled timeline."""

    name: str
    completed: bool
    timestamp: Optional[str] = None


@dataclass(frozen=True)
class Badge:
    name: str
    description: str
    unlocked: bool


@dataclass(frozen=True)
class DailyProgress:
    pickups: int
    target: int
    percentage: float


def _created_at(ticket: WasteTicket) -> datetime:
    try:
        return parse_timestamp(ticket.timestamps.created)
    except (AttributeError, ValueError):
        return _OLDEST


def sort_by_recency(tickets: Iterable[WasteTicket]) -> List[WasteTicket]:
    """Newest first by creation time; tickets created at the same moment keep their order."""
    return sorted(tickets, key=_created_at, reverse=True)


def classification_summary(payload: Any) -> str:
    """
    Renders a classification as "Plastic: 2, Glass: 1".

    Zero counts are dropped. A missing or unparsable payload, or one with nothing
    left after dropping zeros, renders as NOT_AVAILABLE.
    """
    classification = parse_classification(payload)
    if not classification:
        return NOT_AVAILABLE

    parts = [
        f"{category[:1].upper()}{category[1:]}: {count}"
        for category, count in classification.items()
        if count > 0
    ]
    if not parts:
        return NOT_AVAILABLE
    return ", ".join(parts)


def stage_progress(ticket: WasteTicket) -> List[StageProgress]:
    """The three lifecycle stages of a ticket, derived from its status alone."""
    collected = ticket.status in (TicketStatus.COLLECTED, TicketStatus.RECYCLED)
    recycled = ticket.status == TicketStatus.RECYCLED
    return [
        StageProgress("Submitted", True, ticket.timestamps.created),
        StageProgress("Collected", collected, ticket.timestamps.collected if collected else None),
        StageProgress("Recycled", recycled, ticket.timestamps.recycled if recycled else None),
    ]


def status_counts(tickets: Iterable[WasteTicket]) -> Dict[str, int]:
    counts = {status: 0 for status in STATUS_ORDER}
    for ticket in tickets:
        counts[ticket.status] = counts.get(ticket.status, 0) + 1
    return counts


def eco_badges(tickets: Iterable[WasteTicket], eco_points: int) -> List[Badge]:
    """The citizen achievement badges and whether each is unlocked."""
    recycled = status_counts(tickets)[TicketStatus.RECYCLED]
    return [
        Badge("Green Hero", "Recycled 10+ waste items", recycled >= 10),
        Badge("Recycling Champion", "Completed recycling process 5+ times", recycled >= 5),
        Badge("Eco Warrior", "Earned 100+ eco points", eco_points >= 100),
    ]


def recent_tickets(tickets: Sequence[WasteTicket], limit: int = 5) -> List[WasteTicket]:
    """The first tickets of a newest-first collection, for activity feeds."""
    return list(tickets[:limit])


def daily_progress(
    tickets: Iterable[WasteTicket],
    collector_id: str,
    day: date,
    target: int = COLLECTOR_DAILY_TARGET,
) -> DailyProgress:
    """
    Counts the pickups a collector made on a given (UTC) day against their target.

    The percentage is capped at 100.
    """
    pickups = 0
    for ticket in tickets:
        if ticket.collector_id != collector_id or not ticket.timestamps.collected:
            continue
        try:
            collected_on = parse_timestamp(ticket.timestamps.collected).astimezone(timezone.utc).date()
        except ValueError:
            continue
        if collected_on == day:
            pickups += 1

    percentage = min(pickups / target * 100, 100.0) if target > 0 else 100.0
    return DailyProgress(pickups=pickups, target=target, percentage=round(percentage, 2))
