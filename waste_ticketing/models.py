"""
This module defines the data models for the waste ticketing core.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

# Eco points credited to the citizen at each milestone.
SUBMISSION_AWARD = 5
RECYCLING_AWARD = 15

WASTE_CATEGORIES = ("cardboard", "glass", "metal", "paper", "plastic", "trash")


class TicketStatus:
    """The lifecycle states of a waste ticket, in forward order."""

    PENDING = "pending"
    COLLECTED = "collected"
    RECYCLED = "recycled"


STATUS_ORDER = (TicketStatus.PENDING, TicketStatus.COLLECTED, TicketStatus.RECYCLED)


class UserRole:
    CITIZEN = "citizen"
    COLLECTOR = "collector"
    MUNICIPALITY = "municipality"


def status_rank(status: str) -> int:
    """Position of a status in the lifecycle. Raises ValueError for unknown values."""
    try:
        return STATUS_ORDER.index(status)
    except ValueError:
        raise ValueError(f"Unknown ticket status: {status!r}") from None


def format_timestamp(moment: datetime) -> str:
    """Formats a moment as an ISO-8601 UTC string with millisecond precision."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")


def parse_timestamp(value: str) -> datetime:
    """
    Parses an ISO-8601 timestamp, accepting a trailing "Z". Naive values are taken as UTC.

    Raises:
        ValueError: If the value is not an ISO-8601 timestamp string.
    """
    if not isinstance(value, str):
        raise ValueError(f"Timestamp must be an ISO-8601 string, got {value!r}.")
    moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def parse_classification(payload: Any) -> Optional[Dict[str, int]]:
    """
    Parses a raw classification payload into a category -> count mapping.

    The payload may be None, a JSON document (str or bytes) or a mapping. Anything
    that is not a mapping of string labels to non-negative integer counts is
    treated as "no classification" and None is returned. This function never raises.
    """
    if payload is None:
        return None

    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError:
            return None

    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except ValueError:
            return None

    if not isinstance(payload, Mapping):
        return None

    parsed = {}
    for category, count in payload.items():
        if not isinstance(category, str):
            return None
        # bool is a subclass of int but is never a valid count
        if isinstance(count, bool):
            return None
        if isinstance(count, float) and count.is_integer():
            count = int(count)
        if not isinstance(count, int) or count < 0:
            return None
        parsed[category] = count
    return parsed


@dataclass(frozen=True)
class Location:
    """Where a waste item was submitted."""

    lat: Optional[float] = None
    lng: Optional[float] = None
    address: Optional[str] = None

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng, "address": self.address}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional["Location"]:
        if not data:
            return None
        return cls(lat=data.get("lat"), lng=data.get("lng"), address=data.get("address"))


@dataclass(frozen=True)
class TicketTimestamps:
    """ISO-8601 moments at which each lifecycle status was applied."""

    created: str
    collected: Optional[str] = None
    recycled: Optional[str] = None

    def get(self, status: str) -> Optional[str]:
        if status == TicketStatus.PENDING:
            return self.created
        return getattr(self, status, None)

    def latest(self) -> datetime:
        """The most recent moment stamped on the ticket."""
        return max(parse_timestamp(t) for t in (self.created, self.collected, self.recycled) if t)

    def to_dict(self) -> dict:
        data = {"created": self.created}
        if self.collected:
            data["collected"] = self.collected
        if self.recycled:
            data["recycled"] = self.recycled
        return data


@dataclass(frozen=True)
class WasteTicket:
    """Tracks one waste item from submission to recycling completion."""

    id: str
    waste_id: str
    citizen_id: str
    status: str
    image_url: str
    qr_code: str
    timestamps: TicketTimestamps
    eco_points_awarded: int = SUBMISSION_AWARD
    classification: Optional[Dict[str, int]] = None
    location: Optional[Location] = None
    collector_id: Optional[str] = None
    proof_image_url: Optional[str] = None

    def to_dict(self) -> dict:
        """Serializes the ticket into its snapshot form."""
        return {
            "id": self.id,
            "wasteId": self.waste_id,
            "citizenId": self.citizen_id,
            "collectorId": self.collector_id,
            "classification": dict(self.classification) if self.classification is not None else None,
            "status": self.status,
            "imageUrl": self.image_url,
            "qrCode": self.qr_code,
            "proofImageUrl": self.proof_image_url,
            "location": self.location.to_dict() if self.location else None,
            "timestamps": self.timestamps.to_dict(),
            "ecoPointsAwarded": self.eco_points_awarded,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WasteTicket":
        """
        Restores a ticket from its snapshot form.

        Raises:
            KeyError: If a required field is missing.
            ValueError: If the status is not a known lifecycle state or a
                timestamp is not an ISO-8601 string.
        """
        status = data["status"]
        status_rank(status)
        timestamps = data["timestamps"]
        parse_timestamp(timestamps["created"])
        for stamp in (timestamps.get("collected"), timestamps.get("recycled")):
            if stamp is not None:
                parse_timestamp(stamp)
        return cls(
            id=data["id"],
            waste_id=data["wasteId"],
            citizen_id=data["citizenId"],
            status=status,
            image_url=data.get("imageUrl") or "",
            qr_code=data.get("qrCode") or "",
            timestamps=TicketTimestamps(
                created=timestamps["created"],
                collected=timestamps.get("collected"),
                recycled=timestamps.get("recycled"),
            ),
            eco_points_awarded=int(data.get("ecoPointsAwarded") or 0),
            classification=parse_classification(data.get("classification")),
            location=Location.from_dict(data.get("location")),
            collector_id=data.get("collectorId"),
            proof_image_url=data.get("proofImageUrl"),
        )


@dataclass
class User:
    """A signed-in user as supplied by the identity collaborator."""

    id: str
    role: str = UserRole.CITIZEN
    eco_points: int = 0
    name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "role": self.role, "ecoPoints": self.eco_points, "name": self.name}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "User":
        """
        Builds a user from its saved form.

        Raises:
            KeyError: If the id is missing.
            ValueError: If the eco point total is not a non-negative integer.
        """
        eco_points = int(data.get("ecoPoints") or 0)
        if eco_points < 0:
            raise ValueError(f"Eco points cannot be negative, got {eco_points}.")
        return cls(
            id=data["id"],
            role=data.get("role") or UserRole.CITIZEN,
            eco_points=eco_points,
            name=data.get("name") or "",
        )
