import argparse
import asyncio
import json
import logging
import mimetypes
from pathlib import Path

from waste_ticketing.config import DASHBOARD_HOST, DASHBOARD_PORT
from waste_ticketing.exceptions import SubmissionError

from .app_factory import create_facade, initialize_app

logger = logging.getLogger(__name__)


def _print_ticket(facade, waste_id: str) -> int:
    display = facade.get_ticket_display(waste_id)
    if display is None:
        print(f"No waste ticket {waste_id}.")
        return 1
    print(json.dumps(display, indent=2))
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="EcoTrack waste ticketing runner.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("dashboard", help="Run the municipality web dashboard.")

    submit = subparsers.add_parser("submit", help="Submit a waste photo for a citizen.")
    submit.add_argument("citizen_id")
    submit.add_argument("image", type=Path)
    submit.add_argument("--lat", type=float)
    submit.add_argument("--lng", type=float)
    submit.add_argument("--address")

    collect = subparsers.add_parser("collect", help="Mark a ticket as collected.")
    collect.add_argument("waste_id")
    collect.add_argument("collector_id")
    collect.add_argument("--proof", help="Proof image URL.")

    recycle = subparsers.add_parser("recycle", help="Mark a ticket as recycled.")
    recycle.add_argument("waste_id")
    recycle.add_argument("--proof", help="Proof image URL.")

    show = subparsers.add_parser("show", help="Show a ticket.")
    show.add_argument("waste_id")

    args = parser.parse_args(argv)

    initialize_app()
    facade = create_facade()

    if args.command == "dashboard":
        # Imported here so the CLI does not pull in Flask unless needed
        from dashboard.app import run_dashboard
        logger.info("Starting dashboard...")
        run_dashboard(facade, host=DASHBOARD_HOST, port=DASHBOARD_PORT)
        return 0

    if args.command == "submit":
        location = None
        if args.lat is not None or args.lng is not None or args.address:
            location = {"lat": args.lat, "lng": args.lng, "address": args.address}
        mime_type = mimetypes.guess_type(args.image.name)[0] or "image/jpeg"
        try:
            ticket = asyncio.run(
                facade.submit_waste(
                    args.citizen_id, args.image.read_bytes(), mime_type=mime_type, location=location
                )
            )
        except SubmissionError as e:
            print(f"Submission failed, please try again: {e}")
            return 1
        return _print_ticket(facade, ticket.waste_id)

    if args.command == "collect":
        facade.mark_collected(args.waste_id, args.collector_id, args.proof)
    elif args.command == "recycle":
        facade.mark_recycled(args.waste_id, args.proof)
    return _print_ticket(facade, args.waste_id)


if __name__ == "__main__":
    raise SystemExit(main())
