"""
This module contains configuration settings for the application.
"""
import os
import logging

# Logging level
LOG_LEVEL = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)

# Database path (ticket snapshots and logs)
ECO_TRACK_DB_PATH = os.environ.get("ECO_TRACK_DB_PATH", "eco_track.db")

# Key under which the ticket store snapshot is saved
TICKET_STORAGE_KEY = os.environ.get("TICKET_STORAGE_KEY", "waste-storage")

# Key under which user eco point totals are saved
USERS_STORAGE_KEY = os.environ.get("USERS_STORAGE_KEY", "eco-points")

# Classification API
CLASSIFY_API_URL = os.environ.get("CLASSIFY_API_URL", "http://127.0.0.1:8000/classify-image")
CLASSIFY_TIMEOUT_SECONDS = float(os.environ.get("CLASSIFY_TIMEOUT_SECONDS", 15))

# Fallback location for tickets submitted without one
DEFAULT_LOCATION_LAT = float(os.environ.get("DEFAULT_LOCATION_LAT", 18.463499))
DEFAULT_LOCATION_LNG = float(os.environ.get("DEFAULT_LOCATION_LNG", 73.868136))
DEFAULT_LOCATION_ADDRESS = os.environ.get("DEFAULT_LOCATION_ADDRESS", "Pune, India")

# QR code rendering
QR_CODE_WIDTH = int(os.environ.get("QR_CODE_WIDTH", 200))
QR_CODE_MARGIN = int(os.environ.get("QR_CODE_MARGIN", 2))
QR_CODE_DARK_COLOR = os.environ.get("QR_CODE_DARK_COLOR", "#059669")
QR_CODE_LIGHT_COLOR = os.environ.get("QR_CODE_LIGHT_COLOR", "#FFFFFF")

# Collector daily pickup target
COLLECTOR_DAILY_TARGET = int(os.environ.get("COLLECTOR_DAILY_TARGET", 15))

# Dashboard
DASHBOARD_HOST = os.environ.get("DASHBOARD_HOST", "0.0.0.0")
DASHBOARD_PORT = int(os.environ.get("DASHBOARD_PORT", 8080))
