"""
Unit tests for the IdentityService.
"""

import sqlite3
from unittest.mock import patch

import pytest

from waste_ticketing.models import User, UserRole
from waste_ticketing.services.identity_service import IdentityService
from waste_ticketing.services.persistence_service import PersistenceService


def test_login_and_current_user():
    identity = IdentityService()
    assert identity.current_user() is None

    user = identity.login(User(id="col-1", role=UserRole.COLLECTOR))
    assert identity.current_user() is user

    identity.logout()
    assert identity.current_user() is None


def test_login_keeps_known_balance():
    identity = IdentityService()
    identity.credit("c1", 5)
    user = identity.login(User(id="c1"))
    assert user.eco_points == 5


def test_credit_accumulates():
    identity = IdentityService()
    identity.credit("c1", 5)
    identity.credit("c1", 10)
    assert identity.get_user("c1").eco_points == 15
    assert identity.get_user("c2") is None


def test_credit_rejects_non_positive_amounts():
    identity = IdentityService()
    with pytest.raises(ValueError):
        identity.credit("c1", 0)
    with pytest.raises(ValueError):
        identity.credit("c1", -5)


@pytest.fixture
def persistence(tmp_path):
    service = PersistenceService(str(tmp_path / "test_eco_track.db"))
    with service as p:
        p.init_db()
    return service


def test_totals_survive_a_restart(persistence):
    identity = IdentityService(persistence=persistence)
    identity.credit("c1", 5)
    identity.credit("c1", 10)
    identity.login(User(id="col-1", role=UserRole.COLLECTOR, name="Asha"))

    restarted = IdentityService(persistence=persistence)
    assert restarted.load() is True
    assert restarted.get_user("c1").eco_points == 15
    assert restarted.get_user("col-1") == User(id="col-1", role=UserRole.COLLECTOR, name="Asha")
    assert restarted.current_user() is None


def test_load_without_saved_users(persistence):
    identity = IdentityService(persistence=persistence)
    assert identity.load() is False
    assert IdentityService().load() is False


def test_restore_skips_malformed_users():
    identity = IdentityService()
    identity.restore(
        {
            "users": [
                {"id": "c1", "ecoPoints": 20},
                {"ecoPoints": 5},
                {"id": "c2", "ecoPoints": -5},
                {"id": "c3", "ecoPoints": "lots"},
                {"id": "c1", "ecoPoints": 99},
            ]
        }
    )
    assert identity.get_user("c1").eco_points == 20
    assert identity.get_user("c2") is None
    assert identity.get_user("c3") is None


def test_credit_survives_a_database_error(persistence):
    identity = IdentityService(persistence=persistence)
    with patch.object(PersistenceService, "save_snapshot", side_effect=sqlite3.OperationalError("locked")):
        identity.credit("c1", 5)
    assert identity.get_user("c1").eco_points == 5
