"""Example usage of StormSafeAdvisor."""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path so we can import stormsafe
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from stormsafe.advisor import StormSafeAdvisor
from stormsafe.exceptions import AdvisoryError
from stormsafe.models import Coordinates, TripRequest

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def parse_coords(value: str) -> Coordinates:
    """Parse "lat,lng" into Coordinates."""
    try:
        lat, lng = (float(part) for part in value.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected 'lat,lng', got '{value}'")
    return Coordinates(lat=lat, lng=lng)


def print_advisory(trip: TripRequest):
    """
    Fetch and display an advisory for a trip.

    Args:
        trip: TripRequest to evaluate.
    """
    print(f"\n{'='*70}")
    print(f"{trip.origin_label} -> {trip.destination_label}")
    print(f"{'='*70}\n")

    try:
        advisory = StormSafeAdvisor().get_advisory(trip)
    except AdvisoryError as e:
        logger.error(f"Failed to fetch conditions: {e}", exc_info=True)
        print(f"Error: {e}")
        sys.exit(1)

    rec = advisory.recommendation
    print(f"VERDICT: {rec.verdict}")
    print(f"  {rec.summary}\n")
    for reason in rec.reasons:
        print(f"  - {reason}")
    print(f"\nReturn risk: {rec.return_risk}")
    if rec.best_route_advice:
        print(f"Route advice: {rec.best_route_advice}")

    print("\n" + "=" * 70)
    print("TRANSIT:")
    print("-" * 70)
    print(f"  {advisory.transit.summary}")
    for line, status in advisory.transit.subway.items():
        if status.message:
            print(f"  {line}: {status.message}")
    if advisory.transit.path is not None:
        print(f"  PATH: {advisory.transit.path.message or 'Normal service'}")

    print("\n" + "=" * 70)
    print("ROUTE:")
    print("-" * 70)
    travel = advisory.travel_data
    if travel is None:
        print("  No route data available")
    elif travel.ferry_only_route:
        print("  Every route crosses water; transit options are very limited")
    else:
        print(f"  {travel.best_route}")
        print(f"  {travel.distance_miles} mi, {travel.baseline_minutes} min "
              f"({travel.storm_minutes} min in this weather)")
        if travel.relevant_lines:
            print(f"  Lines: {', '.join(travel.relevant_lines)}")

    if advisory.travel_ban.ban_level != "none":
        print(f"\nTRAVEL BAN: {advisory.travel_ban.plain_english}")

    print("\n" + "=" * 70 + "\n")


def main():
    parser = argparse.ArgumentParser(description="Should you make this trip right now?")
    parser.add_argument("origin", type=parse_coords, help="Origin as 'lat,lng'")
    parser.add_argument("destination", help="Destination name (e.g. 'Williamsburg')")
    parser.add_argument("--origin-label", default="Current location")
    parser.add_argument("--origin-address", help="Full origin address (used for PATH relevance)")
    parser.add_argument("--destination-address", help="Full destination address")
    parser.add_argument("--destination-coords", type=parse_coords, help="Skip geocoding with 'lat,lng'")
    parser.add_argument("--departure-time", help="When the traveler plans to leave")
    args = parser.parse_args()

    print_advisory(TripRequest(
        origin=args.origin,
        origin_label=args.origin_label,
        origin_address=args.origin_address,
        destination_label=args.destination,
        destination_address=args.destination_address,
        destination=args.destination_coords,
        departure_time=args.departure_time,
    ))


if __name__ == "__main__":
    main()
