"""
This module provides a factory for creating and configuring the application's core components.
"""

from waste_ticketing.config import ECO_TRACK_DB_PATH
from waste_ticketing.facade import WasteTrackingFacade
from waste_ticketing.services.classification_service import ClassificationService
from waste_ticketing.services.code_image_service import CodeImageService
from waste_ticketing.services.identity_service import IdentityService
from waste_ticketing.services.persistence_service import PersistenceService
from waste_ticketing.services.submission_service import SubmissionService
from waste_ticketing.services.ticket_store import TicketStore

from .logging_config import setup_database_logging


def initialize_app(db_path: str = ECO_TRACK_DB_PATH) -> None:
    """
    Initializes the application by setting up the database and logging.
    """
    # The logs table must exist before the database log handler writes to it
    with PersistenceService(db_path) as persistence_service:
        persistence_service.init_db()
    setup_database_logging(db_path)


def create_facade(db_path: str = ECO_TRACK_DB_PATH) -> WasteTrackingFacade:
    """
    Initializes and returns the WasteTrackingFacade with all its dependencies,
    restoring the persisted tickets and eco point totals.
    """
    persistence_service = PersistenceService(db_path)
    with persistence_service as p:
        p.init_db()
    identity_service = IdentityService(persistence=persistence_service)
    identity_service.load()
    ticket_store = TicketStore(
        points_ledger=identity_service,
        code_encoder=CodeImageService(),
        persistence=persistence_service,
    )
    ticket_store.load()
    submission_service = SubmissionService(ticket_store, ClassificationService())

    return WasteTrackingFacade(
        ticket_store=ticket_store,
        submission_service=submission_service,
        identity_service=identity_service,
        persistence_service=persistence_service,
    )
