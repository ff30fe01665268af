"""
This script runs the Flask web dashboard.
"""

from dashboard.app import run_dashboard
from eco_track.app_factory import create_facade, initialize_app
from waste_ticketing.config import DASHBOARD_HOST, DASHBOARD_PORT

if __name__ == "__main__":
    initialize_app()
    run_dashboard(create_facade(), host=DASHBOARD_HOST, port=DASHBOARD_PORT)
