"""MTA service-alert and PATH real-time feed fetchers."""

import logging
from typing import Any, Dict, Optional

import requests

from .cache import TTLCache
from .config import Settings, get_settings
from .exceptions import MalformedPayload, SourceUnavailable
from .models import LineStatus

logger = logging.getLogger(__name__)

# Seconds-to-arrival beyond which the next PATH train counts as delayed
PATH_DELAY_THRESHOLD_SECONDS = 1200


def _seconds(value: Any) -> Optional[float]:
    # The PATH feed sends secondsToArrival as a string
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_path_status(data: Any) -> LineStatus:
    """
    Parse the PATH arrivals feed into a LineStatus.

    Args:
        data: Decoded feed shaped as {"results": [{"destinations": [{"messages": [...]}]}]}.

    Returns:
        "delays" for the first message flagged as delayed or arriving more than
        20 minutes out, otherwise "normal".
    """
    try:
        for result in data.get("results") or []:
            for destination in result.get("destinations") or []:
                for msg in destination.get("messages") or []:
                    arrival_message = msg.get("arrivalTimeMessage")
                    if isinstance(arrival_message, str) and "Delayed" in arrival_message:
                        return LineStatus("delays", "Delays on PATH - next train delayed")

                    seconds = _seconds(msg.get("secondsToArrival"))
                    if seconds is not None and seconds > PATH_DELAY_THRESHOLD_SECONDS:
                        minutes = round(seconds / 60)
                        return LineStatus("delays", f"Delays on PATH - next train {minutes} min")
    except (AttributeError, TypeError) as e:
        logger.warning(f"Malformed PATH feed: {e}")

    return LineStatus()


def decode_gtfs_alerts(feed_data: bytes) -> Dict[str, Any]:
    """
    Decode a GTFS-Realtime protobuf alert feed into the JSON feed shape.

    Args:
        feed_data: Raw protobuf bytes.

    Returns:
        Dict with an "entity" list using proto field names (informed_entity,
        header_text, ...) and effect codes as enum names.
    """
    from google.protobuf import json_format
    from google.protobuf.message import DecodeError
    from google.transit import gtfs_realtime_pb2

    feed = gtfs_realtime_pb2.FeedMessage()
    try:
        feed.ParseFromString(feed_data)
    except DecodeError as e:
        raise MalformedPayload(f"Alert feed is neither JSON nor GTFS-Realtime: {e}") from e

    return json_format.MessageToDict(feed, preserving_proto_field_name=True)


class MTAClient:
    """Fetches the subway alert feed and PATH arrivals."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
        cache: Optional[TTLCache] = None,
    ):
        """
        Initialize the client.

        Args:
            settings: Configuration; defaults to the process-wide settings.
            session: Optional requests session to reuse connections.
            cache: Feed cache; defaults to a short-lived TTLCache.
        """
        self.settings = settings or get_settings()
        self._session = session or requests.Session()
        self._cache = cache if cache is not None else TTLCache(self.settings.feed_cache_ttl)

    def fetch_alerts_feed(self) -> Dict[str, Any]:
        """
        Fetch the subway service-alert feed.

        Returns:
            Decoded feed dict.

        Raises:
            SourceUnavailable: If the feed cannot be fetched.
            MalformedPayload: If the body cannot be decoded.
        """
        url = self.settings.mta_alerts_url
        cached = self._cache.get(url)
        if cached is not None:
            return cached

        headers = {"Accept": "application/json", "User-Agent": self.settings.user_agent}
        if self.settings.mta_api_key:
            headers["x-api-key"] = self.settings.mta_api_key

        logger.debug(f"Fetching {url}")
        try:
            response = self._session.get(url, headers=headers, timeout=self.settings.request_timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to fetch {url}: {e}")
            raise SourceUnavailable(f"MTA alerts feed unavailable: {e}") from e

        content_type = response.headers.get("Content-Type", "")
        body = response.content
        if "json" in content_type or body.lstrip().startswith(b"{"):
            try:
                feed = response.json()
            except ValueError as e:
                raise MalformedPayload(f"MTA alerts feed is not valid JSON: {e}") from e
        else:
            feed = decode_gtfs_alerts(body)

        entities = feed.get("entity") if isinstance(feed, dict) else None
        logger.debug(f"MTA alert entity count: {len(entities) if isinstance(entities, list) else 0}")
        self._cache.set(url, feed)
        return feed

    def fetch_path_status(self) -> LineStatus:
        """
        Fetch PATH arrivals and reduce them to a status.

        Never raises; any failure yields normal service.
        """
        url = self.settings.path_url
        try:
            response = self._session.get(
                url,
                headers={"User-Agent": self.settings.user_agent},
                timeout=self.settings.request_timeout,
            )
            response.raise_for_status()
            return parse_path_status(response.json())
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Failed to fetch PATH status: {e}")
            return LineStatus()

    def clear_cache(self) -> None:
        """Manually clear the feed cache."""
        self._cache.clear()
