"""Tests for the MTA alert feed and PATH clients."""

import sys
import unittest
from pathlib import Path
from unittest.mock import MagicMock

import requests

# Add src to path so we can import stormsafe
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from stormsafe.cache import NullCache
from stormsafe.config import Settings
from stormsafe.exceptions import MalformedPayload, SourceUnavailable
from stormsafe.models import LineStatus
from stormsafe.mta_client import MTAClient, decode_gtfs_alerts, parse_path_status


def _response(json_data=None, content=b"", content_type="application/json"):
    response = MagicMock()
    response.headers = {"Content-Type": content_type}
    response.content = content
    response.json.return_value = json_data
    response.raise_for_status.return_value = None
    return response


def _settings():
    return Settings(mta_alerts_url="http://alerts.test", path_url="http://path.test", mta_api_key="")


class TestParsePathStatus(unittest.TestCase):
    """Test PATH arrivals parsing."""

    @staticmethod
    def _feed(*messages):
        return {"results": [{"destinations": [{"messages": list(messages)}]}]}

    def test_delayed_marker(self):
        status = parse_path_status(self._feed({"arrivalTimeMessage": "Delayed"}))
        self.assertEqual(status.status, "delays")
        self.assertIn("delayed", status.message)

    def test_long_wait_counts_as_delay(self):
        status = parse_path_status(self._feed({"secondsToArrival": "1500"}))
        self.assertEqual(status, LineStatus("delays", "Delays on PATH - next train 25 min"))

    def test_threshold_is_exclusive(self):
        self.assertEqual(parse_path_status(self._feed({"secondsToArrival": 1200})), LineStatus())

    def test_first_qualifying_message_wins(self):
        status = parse_path_status(self._feed(
            {"secondsToArrival": 120, "arrivalTimeMessage": "2 min"},
            {"secondsToArrival": 1800},
            {"arrivalTimeMessage": "Delayed"},
        ))
        self.assertEqual(status.message, "Delays on PATH - next train 30 min")

    def test_malformed_feed_is_normal(self):
        for data in (None, [], {"results": "x"}, {"results": [{"destinations": [5]}]}):
            self.assertEqual(parse_path_status(data), LineStatus())


class TestMTAClient(unittest.TestCase):
    """Test MTA GTFS-Realtime data fetching."""

    def test_fetch_json_feed(self):
        session = MagicMock()
        session.get.return_value = _response({"entity": [{"id": "1"}]})
        client = MTAClient(settings=_settings(), session=session, cache=NullCache())

        feed = client.fetch_alerts_feed()

        self.assertEqual(feed, {"entity": [{"id": "1"}]})

    def test_fetch_protobuf_feed(self):
        """Protobuf feeds decode into the same dict shape as the JSON mirror."""
        session = MagicMock()
        session.get.return_value = _response(
            content=self._create_mock_protobuf(), content_type="application/x-protobuf"
        )
        client = MTAClient(settings=_settings(), session=session, cache=NullCache())

        feed = client.fetch_alerts_feed()

        alert = feed["entity"][0]["alert"]
        self.assertEqual(alert["informed_entity"][0]["route_id"], "A")
        self.assertEqual(alert["header_text"]["translation"][0]["text"], "A trains are delayed")
        self.assertEqual(alert["effect"], "SIGNIFICANT_DELAYS")

    def test_feed_is_cached(self):
        session = MagicMock()
        session.get.return_value = _response({"entity": []})
        client = MTAClient(settings=_settings(), session=session)

        client.fetch_alerts_feed()
        client.fetch_alerts_feed()
        self.assertEqual(session.get.call_count, 1)

        client.clear_cache()
        client.fetch_alerts_feed()
        self.assertEqual(session.get.call_count, 2)

    def test_fetch_failure_raises_source_unavailable(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("down")
        client = MTAClient(settings=_settings(), session=session, cache=NullCache())

        with self.assertRaises(SourceUnavailable):
            client.fetch_alerts_feed()

    def test_undecodable_body(self):
        with self.assertRaises(MalformedPayload):
            decode_gtfs_alerts(b"\xff\xff\xff not a protobuf")

    def test_path_fetch_never_raises(self):
        session = MagicMock()
        session.get.side_effect = requests.Timeout("slow")
        client = MTAClient(settings=_settings(), session=session)

        self.assertEqual(client.fetch_path_status(), LineStatus())

    def test_path_fetch_parses_feed(self):
        session = MagicMock()
        session.get.return_value = _response(
            {"results": [{"destinations": [{"messages": [{"arrivalTimeMessage": "Delayed"}]}]}]}
        )
        client = MTAClient(settings=_settings(), session=session)

        self.assertEqual(client.fetch_path_status().status, "delays")

    @staticmethod
    def _create_mock_protobuf() -> bytes:
        """Create a minimal GTFS-Realtime alert feed."""
        from google.transit import gtfs_realtime_pb2

        feed = gtfs_realtime_pb2.FeedMessage()
        feed.header.gtfs_realtime_version = "2.0"

        entity = feed.entity.add()
        entity.id = "alert-1"

        alert = entity.alert
        alert.informed_entity.add().route_id = "A"
        alert.effect = gtfs_realtime_pb2.Alert.SIGNIFICANT_DELAYS
        translation = alert.header_text.translation.add()
        translation.text = "A trains are delayed"
        translation.language = "en"

        return feed.SerializeToString()


if __name__ == "__main__":
    unittest.main()
