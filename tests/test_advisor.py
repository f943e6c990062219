"""Tests for StormSafeAdvisor fusion and orchestration."""

import sys
import unittest
from pathlib import Path
from unittest.mock import MagicMock

# Add src to path so we can import stormsafe
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from stormsafe.advisor import StormSafeAdvisor, build_payload, compute_is_walkable
from stormsafe.config import Settings
from stormsafe.exceptions import AdvisoryError
from stormsafe.models import (
    Coordinates,
    LineStatus,
    Precipitation,
    TravelBan,
    TravelData,
    TripRequest,
    WeatherSnapshot,
)
from stormsafe.recommendation import DEFAULT_RECOMMENDATION, RecommendationEngine
from stormsafe.transit_status import TransitStatusService, default_transit_status
from stormsafe.travel_ban import TravelBanService
from stormsafe.travel_data import TravelDataService
from stormsafe.weather import WeatherClient


def _travel(category="short_transit", baseline=25):
    return TravelData(baseline, round(baseline * 1.7), 1.2, category, "Take the A train - about 25 min",
                      relevant_lines=["A"])


class TestWalkable(unittest.TestCase):
    """Test the walkable flag."""

    def test_walkable_bucket(self):
        self.assertTrue(compute_is_walkable(_travel("walkable", 25)))

    def test_short_trip(self):
        self.assertTrue(compute_is_walkable(_travel("short_transit", 19)))
        self.assertFalse(compute_is_walkable(_travel("short_transit", 20)))

    def test_missing_or_ferry(self):
        self.assertFalse(compute_is_walkable(None))
        ferry = TravelData(None, None, None, "unknown", None, ferry_only_route=True)
        self.assertFalse(compute_is_walkable(ferry))


class TestStormSafeAdvisor(unittest.TestCase):
    """Test the concurrent fetch and fusion pipeline."""

    def setUp(self):
        self.trip = TripRequest(
            origin=Coordinates(lat=40.7440, lng=-74.0324),
            origin_label="Hoboken",
            origin_address="Washington St, Hoboken, NJ",
            destination_label="West Village",
            destination_address="Bleecker St, New York, NY",
            destination=Coordinates(lat=40.7336, lng=-74.0027),
            departure_time="21:00",
        )
        self.weather = MagicMock(spec=WeatherClient)
        self.weather.fetch_weather.return_value = WeatherSnapshot(
            precipitation=Precipitation(type="snow", intensity="heavy")
        )
        self.ban = MagicMock(spec=TravelBanService)
        self.ban.fetch_travel_ban.return_value = TravelBan()
        self.transit = MagicMock(spec=TransitStatusService)
        self.transit.fetch_transit_status.return_value = default_transit_status(include_path=True)
        self.travel = MagicMock(spec=TravelDataService)
        self.travel.fetch_travel_data.return_value = _travel("walkable", 15)
        self.engine = MagicMock(spec=RecommendationEngine)
        self.engine.get_recommendation.return_value = DEFAULT_RECOMMENDATION

        self.advisor = StormSafeAdvisor(
            settings=Settings(default_weather_severity="severe"),
            weather=self.weather,
            travel_ban=self.ban,
            transit=self.transit,
            travel_data=self.travel,
            engine=self.engine,
        )

    def test_complete_advisory(self):
        advisory = self.advisor.get_advisory(self.trip)

        self.assertEqual(advisory.recommendation, DEFAULT_RECOMMENDATION)
        self.assertEqual(advisory.weather.precipitation.type, "snow")
        self.assertIsNotNone(advisory.transit.path)

        payload = self.engine.get_recommendation.call_args.args[0]
        self.assertTrue(payload.is_walkable)
        self.assertEqual(payload.origin_name, "Hoboken")
        self.assertEqual(payload.destination, self.trip.destination)
        self.assertEqual(payload.departure_time, "21:00")

    def test_sources_receive_trip_details(self):
        self.advisor.get_advisory(self.trip)

        self.weather.fetch_weather.assert_called_once_with(40.7440, -74.0324)
        self.transit.fetch_transit_status.assert_called_once_with(
            [], "Washington St, Hoboken, NJ", "Bleecker St, New York, NY"
        )
        self.travel.fetch_travel_data.assert_called_once_with(
            self.trip.origin, "West Village", "severe", self.trip.destination
        )

    def test_failing_sources_resolve_to_defaults(self):
        """One broken source never sinks the others."""
        self.weather.fetch_weather.side_effect = RuntimeError("weather down")
        self.transit.fetch_transit_status.side_effect = RuntimeError("mta down")
        self.travel.fetch_travel_data.side_effect = RuntimeError("mapbox down")

        advisory = self.advisor.get_advisory(self.trip)

        self.assertEqual(advisory.weather, WeatherSnapshot())
        self.assertIsNone(advisory.travel_data)
        self.assertEqual(advisory.transit.summary, "Good service on all lines")
        # Hoboken trip, so the fallback still reports PATH
        self.assertEqual(advisory.transit.path, LineStatus())
        payload = self.engine.get_recommendation.call_args.args[0]
        self.assertFalse(payload.is_walkable)
        self.assertIsNone(payload.to_dict()["travel_data"])

    def test_payload_serializes_explicit_nulls(self):
        self.travel.fetch_travel_data.return_value = None
        self.advisor.get_advisory(self.trip)

        data = self.engine.get_recommendation.call_args.args[0].to_dict()
        self.assertIsNone(data["weather"]["wind"])
        self.assertIsNone(data["travel_data"])
        self.assertEqual(data["travel_ban"]["ban_level"], "none")

    def test_fusion_failure_raises(self):
        self.trip.origin = None  # Cannot even submit the weather fetch

        with self.assertRaises(AdvisoryError):
            self.advisor.get_advisory(self.trip)
        self.engine.get_recommendation.assert_not_called()

    def test_build_payload(self):
        payload = build_payload(
            self.trip, WeatherSnapshot(), TravelBan(), default_transit_status(False), None
        )
        self.assertFalse(payload.is_walkable)
        self.assertIsNone(payload.to_dict()["transit_status"]["path"])


if __name__ == "__main__":
    unittest.main()
