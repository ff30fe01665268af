"""
This module defines the IdentityService, the session's source of users and eco points.
"""

import logging
import sqlite3
from typing import Any, Dict, Mapping, Optional, Protocol

from ..config import USERS_STORAGE_KEY
from ..models import User, UserRole
from .persistence_service import PersistenceService

logger = logging.getLogger(__name__)


class PointsLedger(Protocol):
    """The one capability the ticket store needs from the identity collaborator."""

    def credit(self, citizen_id: str, amount: int) -> None:
        ...


class IdentityService:
    """
    Keeps the signed-in user and every known user's running eco point total.

    Point totals are only ever incremented through credit(). When persistence is
    configured the known users are saved after every change, so totals survive
    between processes; the signed-in user is never saved.
    """

    def __init__(
        self,
        persistence: Optional[PersistenceService] = None,
        storage_key: str = USERS_STORAGE_KEY,
    ):
        self.persistence = persistence
        self.storage_key = storage_key
        self._users: Dict[str, User] = {}
        self._current_user_id: Optional[str] = None

    def login(self, user: User) -> User:
        """Registers the user if needed and makes them the current user."""
        known = self._users.get(user.id)
        if known is None:
            known = self._users[user.id] = user
            self._persist()
        self._current_user_id = known.id
        logger.info(f"User {known.id} signed in as {known.role}.")
        return known

    def logout(self) -> None:
        self._current_user_id = None

    def current_user(self) -> Optional[User]:
        if self._current_user_id is None:
            return None
        return self._users.get(self._current_user_id)

    def get_user(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def credit(self, citizen_id: str, amount: int) -> None:
        """
        Adds eco points to a citizen's running total.

        Citizens not seen before are registered with a zero balance first.

        Raises:
            ValueError: If the amount is not positive.
        """
        if amount <= 0:
            raise ValueError(f"Eco point credits must be positive, got {amount}.")
        user = self._users.setdefault(citizen_id, User(id=citizen_id, role=UserRole.CITIZEN))
        user.eco_points += amount
        logger.info(f"Credited {amount} eco points to {citizen_id} (total {user.eco_points}).")
        self._persist()

    # --- Persistence ---

    def snapshot(self) -> dict:
        return {"users": [user.to_dict() for user in self._users.values()]}

    def restore(self, snapshot: Mapping[str, Any]) -> None:
        """Replaces the known users wholesale. Malformed entries are skipped."""
        users: Dict[str, User] = {}
        for data in snapshot.get("users") or []:
            try:
                user = User.from_dict(data)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Skipping malformed user in snapshot: {e}")
                continue
            users.setdefault(user.id, user)
        self._users = users
        logger.info(f"Restored eco point totals for {len(users)} users.")

    def load(self) -> bool:
        """
        Restores the last persisted users.

        Returns:
            True if a snapshot was found and restored.
        """
        if self.persistence is None:
            return False
        with self.persistence as p:
            snapshot = p.load_snapshot(self.storage_key)
        if snapshot is None:
            return False
        self.restore(snapshot)
        return True

    def _persist(self) -> None:
        if self.persistence is None:
            return
        try:
            with self.persistence as p:
                p.save_snapshot(self.storage_key, self.snapshot())
        except sqlite3.Error:
            logger.exception("Failed to persist eco point totals.")
