"""Merge subway alerts and PATH arrivals into one TransitStatus."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, Optional

from .alerts import init_subway_status, process_alerts
from .exceptions import StormSafeError
from .models import LineStatus, TransitStatus
from .mta_client import MTAClient

logger = logging.getLogger(__name__)

# Place names that mean a trip may cross the Hudson on PATH
NJ_KEYWORDS = (
    "new jersey",
    "nj",
    "jersey city",
    "hoboken",
    "newark",
    "harrison",
    "journal square",
    "grove street",
    "exchange place",
    "newport",
    "secaucus",
    "bayonne",
    "weehawken",
    "edgewater",
    "fort lee",
    "union city",
)

GOOD_SERVICE = "Good service on all lines"


def is_path_relevant(origin: Optional[str], destination: Optional[str]) -> bool:
    """True when either end of the trip mentions a New Jersey place."""
    haystack = f"{origin or ''} {destination or ''}".lower()
    return any(keyword in haystack for keyword in NJ_KEYWORDS)


def generate_summary(subway: Dict[str, LineStatus], path: Optional[LineStatus]) -> str:
    """One-line description of which lines have issues."""
    delayed_lines = [line for line, status in subway.items() if status.message]
    path_affected = bool(path and path.message)

    if not delayed_lines and not path_affected:
        return GOOD_SERVICE
    if delayed_lines and not path_affected:
        return f"Delays on {', '.join(delayed_lines)}"
    if not delayed_lines:
        return "PATH service affected"
    return f"Delays on {', '.join(delayed_lines)} and PATH"


def default_transit_status(include_path: bool = True) -> TransitStatus:
    """Safe fallback: every line in good service."""
    return TransitStatus(
        subway=init_subway_status(),
        path=LineStatus() if include_path else None,
        summary=GOOD_SERVICE,
        severity="none",
    )


class TransitStatusService:
    """Fetches MTA alerts and, for New Jersey trips, PATH status."""

    def __init__(self, client: Optional[MTAClient] = None):
        self.client = client or MTAClient()

    def _fetch_alerts_feed(self):
        try:
            return self.client.fetch_alerts_feed()
        except StormSafeError as e:
            logger.warning(f"Failed to fetch alerts: {e}")
            return None

    def fetch_transit_status(
        self,
        route_ids: Optional[Iterable[str]] = None,
        origin: Optional[str] = None,
        destination: Optional[str] = None,
    ) -> TransitStatus:
        """
        Get subway and PATH status for a trip.

        Args:
            route_ids: Optional route IDs to restrict the result to (e.g. ["A", "L"]).
            origin: Trip origin address, used to decide whether PATH matters.
            destination: Trip destination address.

        Returns:
            TransitStatus. ``path`` is None when PATH was not relevant and
            therefore never fetched.
        """
        route_ids = list(route_ids or [])
        path_needed = is_path_relevant(origin, destination)

        try:
            with ThreadPoolExecutor(max_workers=2) as pool:
                alerts_future = pool.submit(self._fetch_alerts_feed)
                path_future = pool.submit(self.client.fetch_path_status) if path_needed else None

                feed = alerts_future.result()
                path_status = path_future.result() if path_future else None

            subway_status, max_severity = process_alerts(feed, route_ids)
            # Summary covers every line the matching alerts touched, before trimming
            summary = generate_summary(subway_status, path_status)

            if route_ids:
                subway_status = {
                    route_id: subway_status[route_id]
                    for route_id in route_ids
                    if route_id in subway_status
                }

            return TransitStatus(
                subway=subway_status,
                path=path_status,
                summary=summary,
                severity=max_severity,
            )
        except Exception as e:
            logger.error(f"Transit status fetch error: {e}", exc_info=True)
            return default_transit_status(include_path=path_needed)
