"""Derive travel timing and route facts from Mapbox walking directions."""

import logging
import math
import re
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from .config import Settings, get_settings
from .exceptions import MalformedPayload, SourceUnavailable, StormSafeError
from .models import SUBWAY_LINES, Coordinates, RouteStep, TravelData

logger = logging.getLogger(__name__)

METERS_TO_MILES = 0.000621371

# Multiplier applied to baseline travel time per weather severity bucket
STORM_MULTIPLIERS = {
    "none": 1.0,
    "light": 1.3,
    "moderate": 1.7,
    "severe": 2.2,
    "extreme": 3.0,
}

WATER_KEYWORDS = ("ferry", "boat", "water taxi", "water shuttle")

# Steps mentioning these are left out of the route description
EXCLUDED_MODES = ("bus", "ferry", "boat", "water taxi")

MAX_ROUTE_STEPS = 6

# Centre of Manhattan, used to bias geocoding toward NYC
NYC_PROXIMITY = "-74.006,40.7128"

_LINE_PATTERN = re.compile(
    r"\bthe\s+([ACEDGFJLMNQRSW1-7](?:/[ACEDGFJLMNQRSW1-7])*)\s*(?:train|line)?\b",
    re.IGNORECASE,
)

_VALID_LINES = frozenset(SUBWAY_LINES)


def _instruction(step: Dict[str, Any]) -> str:
    maneuver = step.get("maneuver")
    if isinstance(maneuver, dict) and isinstance(maneuver.get("instruction"), str):
        return maneuver["instruction"]
    return ""


def _route_steps(route: Dict[str, Any]) -> List[Dict[str, Any]]:
    # Steps live inside route.legs[0].steps for Mapbox Directions v5
    legs = route.get("legs") or []
    if not legs or not isinstance(legs[0], dict):
        return []
    return [step for step in legs[0].get("steps") or [] if isinstance(step, dict)]


def round_half_up(value: float, digits: int = 0):
    """Round halves away from zero for positive values (2.5 -> 3)."""
    scale = 10 ** digits
    rounded = math.floor(value * scale + 0.5)
    return rounded if digits == 0 else rounded / scale


def _maneuver_type(step: Dict[str, Any]) -> Optional[str]:
    maneuver = step.get("maneuver")
    return maneuver.get("type") if isinstance(maneuver, dict) else None


def get_storm_multiplier(weather_severity: str) -> float:
    return STORM_MULTIPLIERS.get(weather_severity, 1.0)


def distance_category(distance_miles: float) -> str:
    """Bucket a distance into walkable, short_transit or long_transit."""
    if distance_miles < 0.8:
        return "walkable"
    if distance_miles < 3:
        return "short_transit"
    return "long_transit"


def is_water_route(steps: List[Dict[str, Any]]) -> bool:
    """True if any step involves ferry, boat or other water transport."""
    for step in steps:
        mode = str(step.get("mode") or "").lower()
        instruction = _instruction(step).lower()
        if mode == "ferry" or any(keyword in instruction for keyword in WATER_KEYWORDS):
            return True
    return False


def extract_relevant_lines(steps: List[Dict[str, Any]]) -> List[str]:
    """
    Extract subway lines named in step instructions.

    Matches phrasings such as "the A train", "the A/C/E line" or "Take the 6".
    Returns lines in the order first seen.
    """
    found: List[str] = []
    for step in steps:
        for match in _LINE_PATTERN.finditer(_instruction(step)):
            for part in match.group(1).upper().split("/"):
                if part in _VALID_LINES and part not in found:
                    found.append(part)
    return found


def describe_route(steps: List[Dict[str, Any]], total_minutes: int) -> Optional[str]:
    """
    Build a one-sentence route description from step instructions.

    Returns None when no usable step text exists.
    """
    move_steps = [
        step for step in steps
        if _maneuver_type(step) != "arrive"
        and _instruction(step)
        and not any(mode in _instruction(step).lower() for mode in EXCLUDED_MODES)
    ]
    if not move_steps:
        return None

    first = _instruction(move_steps[0])
    if len(move_steps) == 1:
        return f"{first} - about {total_minutes} min"

    last = _instruction(move_steps[-1]).lower()
    return f"{first}, then {last} - about {total_minutes} min"


def fallback_route(category: str, weather_severity: str) -> str:
    """Generic route advice when no step text is available."""
    if category == "walkable":
        if weather_severity == "extreme":
            return "Within walking distance, but take shelter or use transit given the weather."
        if weather_severity == "severe":
            return "Within walking distance. Bundle up, conditions are rough."
        return "Walking distance, straightforward if weather allows."
    if category == "short_transit":
        if weather_severity == "extreme":
            return "Take the subway to avoid street exposure."
        return "A quick subway or bus ride. Stay underground as much as possible."
    if weather_severity == "extreme":
        return "Take the subway or rideshare and avoid prolonged outdoor exposure."
    if weather_severity == "severe":
        return "Subway preferred over street-level routes."
    return "Take the subway when available to limit weather exposure."


def ferry_only_travel_data() -> TravelData:
    """Result for a trip where every route alternative crosses water."""
    return TravelData(
        baseline_minutes=None,
        storm_minutes=None,
        distance_miles=None,
        distance_category="unknown",
        best_route=None,
        ferry_only_route=True,
        relevant_lines=[],
        route_steps=[],
    )


def build_travel_data(directions: Dict[str, Any], weather_severity: str = "none") -> TravelData:
    """
    Derive TravelData from a Mapbox directions response.

    Args:
        directions: Decoded directions response with "routes".
        weather_severity: none, light, moderate, severe or extreme.

    Returns:
        TravelData for the first route that avoids water transport, or the
        ferry-only shape if every alternative involves it.

    Raises:
        MalformedPayload: If the response holds no usable route.
    """
    routes = directions.get("routes") if isinstance(directions, dict) else None
    if not isinstance(routes, list) or not routes:
        raise MalformedPayload("Directions response contains no routes")

    land_routes = [
        route for route in routes
        if isinstance(route, dict) and not is_water_route(_route_steps(route))
    ]
    if not land_routes:
        logger.warning("All routes are ferry-based, flagging ferry_only_route")
        return ferry_only_travel_data()

    route = land_routes[0]
    steps = _route_steps(route)
    try:
        duration = float(route["duration"])  # seconds
        distance = float(route["distance"])  # meters
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedPayload(f"Route is missing duration or distance: {e}") from e

    baseline_minutes = round_half_up(duration / 60)
    storm_minutes = round_half_up(baseline_minutes * get_storm_multiplier(weather_severity))
    distance_miles = round_half_up(distance * METERS_TO_MILES, 1)
    category = distance_category(distance_miles)
    logger.debug(f"Route duration {duration}s -> baseline {baseline_minutes} min, {distance_miles} mi")

    best_route = describe_route(steps, baseline_minutes) or fallback_route(category, weather_severity)

    relevant_lines = extract_relevant_lines(steps)
    logger.debug(f"Relevant lines extracted: {relevant_lines}")

    route_steps = [
        RouteStep(
            instruction=_instruction(step) or None,
            street=step.get("name") or None,
            duration_sec=round_half_up(float(step.get("duration") or 0)),
        )
        for step in steps[:MAX_ROUTE_STEPS]
    ]

    return TravelData(
        baseline_minutes=baseline_minutes,
        storm_minutes=storm_minutes,
        distance_miles=distance_miles,
        distance_category=category,
        best_route=best_route,
        ferry_only_route=False,
        relevant_lines=relevant_lines,
        route_steps=route_steps,
    )


class MapboxClient:
    """Geocoding and walking directions from Mapbox."""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or get_settings()
        self._session = session or requests.Session()

    def _get(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        params = dict(params, access_token=self.settings.mapbox_token)
        try:
            response = self._session.get(url, params=params, timeout=self.settings.request_timeout)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as e:
            raise SourceUnavailable(f"Mapbox request failed: {e}") from e

    def geocode(self, query: str) -> Coordinates:
        """
        Resolve a free-text place to coordinates, biased toward NYC.

        Raises:
            SourceUnavailable: If the request fails or nothing matches.
        """
        url = f"{self.settings.mapbox_base_url}/geocoding/v5/mapbox.places/{quote(query)}.json"
        data = self._get(url, {"proximity": NYC_PROXIMITY, "country": "US"})
        features = data.get("features") or []
        if not features:
            raise SourceUnavailable(f"No geocoding results for '{query}'")
        lng, lat = features[0]["geometry"]["coordinates"][:2]
        return Coordinates(lat=lat, lng=lng)

    def directions(self, origin: Coordinates, destination: Coordinates) -> Dict[str, Any]:
        """Walking directions with steps and alternatives."""
        url = (
            f"{self.settings.mapbox_base_url}/directions/v5/mapbox/walking/"
            f"{origin.lng},{origin.lat};{destination.lng},{destination.lat}"
        )
        data = self._get(url, {"steps": "true", "alternatives": "true"})
        routes = data.get("routes") or []
        logger.debug(f"Mapbox returned {len(routes)} routes")
        return data


class TravelDataService:
    """Fetches directions and reduces them to TravelData."""

    def __init__(self, client: Optional[MapboxClient] = None, settings: Optional[Settings] = None):
        self.settings = settings or (client.settings if client else get_settings())
        self.client = client or MapboxClient(self.settings)

    def fetch_travel_data(
        self,
        origin: Coordinates,
        destination: str,
        weather_severity: str = "none",
        destination_coords: Optional[Coordinates] = None,
    ) -> Optional[TravelData]:
        """
        Get travel data for a trip.

        Args:
            origin: Starting coordinates.
            destination: Destination place name, geocoded only when
                destination_coords is absent.
            weather_severity: Bucket used for the storm travel-time projection.
            destination_coords: Known destination coordinates.

        Returns:
            TravelData, or None if any step fails.
        """
        if not self.settings.mapbox_token:
            logger.warning("Mapbox token not configured")
            return None

        try:
            # Known coordinates avoid resolving a short label to the wrong city
            dest = destination_coords or self.client.geocode(destination)
            directions = self.client.directions(origin, dest)
            return build_travel_data(directions, weather_severity)
        except StormSafeError as e:
            logger.warning(f"Travel data unavailable: {e}")
            return None
        except Exception as e:
            logger.error(f"Travel data fetch error: {e}", exc_info=True)
            return None
