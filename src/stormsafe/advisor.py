"""Main StormSafe advisor: fetch everything, fuse, ask for a verdict."""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

from .config import Settings, get_settings
from .exceptions import AdvisoryError
from .llm_client import LLMClient
from .models import (
    Advisory,
    RecommendationPayload,
    TransitStatus,
    TravelBan,
    TravelData,
    TripRequest,
    WeatherSnapshot,
)
from .mta_client import MTAClient
from .recommendation import RecommendationEngine
from .transit_status import TransitStatusService, default_transit_status, is_path_relevant
from .travel_ban import TravelBanService
from .travel_data import TravelDataService
from .weather import WeatherClient

logger = logging.getLogger(__name__)

# Trips shorter than this count as walkable even outside the walkable bucket
WALKABLE_MINUTES = 20


def compute_is_walkable(travel: Optional[TravelData]) -> bool:
    """True for trips in the walkable bucket or under 20 minutes on foot."""
    if travel is None:
        return False
    if travel.distance_category == "walkable":
        return True
    return travel.baseline_minutes is not None and travel.baseline_minutes < WALKABLE_MINUTES


def build_payload(
    trip: TripRequest,
    weather: WeatherSnapshot,
    travel_ban: TravelBan,
    transit: TransitStatus,
    travel: Optional[TravelData],
) -> RecommendationPayload:
    """Fuse every source into the payload the reasoning step sees."""
    return RecommendationPayload(
        origin=trip.origin,
        origin_name=trip.origin_label,
        destination=trip.destination,
        destination_name=trip.destination_label,
        departure_time=trip.departure_time,
        weather=weather,
        travel_ban=travel_ban,
        transit_status=transit,
        travel_data=travel,
        is_walkable=compute_is_walkable(travel),
    )


def _result_or_default(future: Future, name: str, default: Callable[[], Any]) -> Any:
    # Each source resolves to its own default so one failure never sinks the others
    try:
        return future.result()
    except Exception as e:
        logger.error(f"{name} fetch failed: {e}", exc_info=True)
        return default()


class StormSafeAdvisor:
    """
    Answers "should I make this trip right now?".

    This class provides methods to:
    - Fetch weather, travel ban, transit status and route data concurrently
    - Fuse them into one payload
    - Get a schema-enforced recommendation from the language model
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        weather: Optional[WeatherClient] = None,
        travel_ban: Optional[TravelBanService] = None,
        transit: Optional[TransitStatusService] = None,
        travel_data: Optional[TravelDataService] = None,
        engine: Optional[RecommendationEngine] = None,
    ):
        """
        Initialize the advisor.

        Args:
            settings: Configuration shared by the default collaborators.
            weather, travel_ban, transit, travel_data, engine: Optional
                collaborators; built from ``settings`` when omitted.
        """
        self.settings = settings or get_settings()
        self.weather = weather or WeatherClient(self.settings)
        self.travel_ban = travel_ban or TravelBanService(self.settings)
        self.transit = transit or TransitStatusService(MTAClient(self.settings))
        self.travel_data = travel_data or TravelDataService(settings=self.settings)
        self.engine = engine or RecommendationEngine(LLMClient(self.settings))

    def gather(self, trip: TripRequest):
        """
        Run all upstream fetches concurrently and wait for every one.

        Returns:
            (weather, travel_ban, transit, travel_data)
        """
        # Full addresses carry the state, which PATH relevance depends on
        origin_text = trip.origin_address or trip.origin_label
        destination_text = trip.destination_address or trip.destination_label

        with ThreadPoolExecutor(max_workers=4) as pool:
            weather_future = pool.submit(self.weather.fetch_weather, trip.origin.lat, trip.origin.lng)
            ban_future = pool.submit(self.travel_ban.fetch_travel_ban)
            transit_future = pool.submit(
                self.transit.fetch_transit_status, [], origin_text, destination_text
            )
            travel_future = pool.submit(
                self.travel_data.fetch_travel_data,
                trip.origin,
                trip.destination_label,
                self.settings.default_weather_severity,
                trip.destination,
            )

            weather = _result_or_default(weather_future, "Weather", WeatherSnapshot)
            ban = _result_or_default(ban_future, "Travel ban", TravelBan)
            transit = _result_or_default(
                transit_future,
                "Transit status",
                lambda: default_transit_status(is_path_relevant(origin_text, destination_text)),
            )
            travel = _result_or_default(travel_future, "Travel data", lambda: None)

        if travel is None:
            logger.warning("No travel data for this trip")
        return weather, ban, transit, travel

    def get_advisory(self, trip: TripRequest) -> Advisory:
        """
        Get a complete advisory for a trip.

        Args:
            trip: TripRequest describing origin and destination.

        Returns:
            Advisory with the recommendation and the data behind it.

        Raises:
            AdvisoryError: If the pipeline cannot produce a result at all.
        """
        try:
            weather, ban, transit, travel = self.gather(trip)
            payload = build_payload(trip, weather, ban, transit, travel)
        except Exception as e:
            logger.error(f"Advisory pipeline failed: {e}", exc_info=True)
            raise AdvisoryError(f"Could not gather trip conditions: {e}") from e

        recommendation = self.engine.get_recommendation(payload)
        logger.info(f"Verdict for {trip.origin_label} -> {trip.destination_label}: {recommendation.verdict}")

        return Advisory(
            recommendation=recommendation,
            transit=transit,
            travel_data=travel,
            weather=weather,
            travel_ban=ban,
        )
