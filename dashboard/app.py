"""
This module contains the backend Flask application for the dashboard.
"""

import logging

from flask import Flask, abort, current_app, jsonify, render_template

logger = logging.getLogger(__name__)

app = Flask(__name__)


def _facade():
    facade = current_app.config.get("FACADE")
    if facade is None:
        abort(503, description="The dashboard is not connected to a ticket store.")
    return facade


@app.before_request
def reload_state():
    """Picks up tickets and eco points saved by other processes, such as the CLI."""
    facade = current_app.config.get("FACADE")
    if facade is not None:
        facade.reload()


@app.route("/")
def index():
    """Renders the municipality overview: status counts, recent activity and logs."""
    data = _facade().get_municipality_dashboard()
    if "error" in data:
        logger.error(f"Dashboard data unavailable: {data['error']}")
    return render_template("index.html", data=data)


@app.route("/tickets/<waste_id>")
def ticket(waste_id):
    display = _facade().get_ticket_display(waste_id)
    if display is None:
        abort(404, description=f"No waste ticket {waste_id}.")
    return jsonify(display)


@app.route("/citizens/<citizen_id>")
def citizen(citizen_id):
    return jsonify(_facade().get_citizen_dashboard(citizen_id))


@app.route("/collectors/<collector_id>")
def collector(collector_id):
    return jsonify(_facade().get_collector_dashboard(collector_id))


def run_dashboard(facade, host: str = "0.0.0.0", port: int = 8080) -> None:
    """Serves the dashboard for the given facade."""
    app.config["FACADE"] = facade
    # Running on 0.0.0.0 makes it accessible from outside the container
    app.run(host=host, port=port)
