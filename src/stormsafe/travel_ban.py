"""NYC travel ban signal with a short-lived cache."""

import logging
from typing import Optional

import requests

from .cache import TTLCache
from .config import Settings, get_settings
from .models import TravelBan

logger = logging.getLogger(__name__)

CACHE_KEY = "travel_ban"

TRANSIT_SUSPENDED_KEYWORDS = ("transit suspended", "subway suspended", "mta suspended")
VEHICLE_BAN_KEYWORDS = ("vehicle ban", "no private vehicles", "no cars allowed")
ADVISORY_KEYWORDS = ("travel advisory", "travel strongly discouraged")


def parse_travel_ban_html(html: str) -> TravelBan:
    """
    Detect the ban level announced on an Emergency Management page.

    Transit suspension outranks a vehicle ban, which outranks an advisory.
    """
    text = (html or "").lower()

    if any(keyword in text for keyword in TRANSIT_SUSPENDED_KEYWORDS):
        return TravelBan(
            ban_level="transit_suspended",
            plain_english="NYC Transit (MTA) services are suspended",
            affects_subway=True,
            affects_rideshare=True,
        )
    if any(keyword in text for keyword in VEHICLE_BAN_KEYWORDS):
        return TravelBan(
            ban_level="vehicle_ban",
            plain_english="All private vehicles banned from NYC streets",
            affects_rideshare=True,
        )
    if any(keyword in text for keyword in ADVISORY_KEYWORDS):
        return TravelBan(
            ban_level="advisory",
            plain_english="Travel is strongly discouraged; only travel if absolutely necessary",
            affects_walking=True,
        )
    return TravelBan()


class TravelBanService:
    """Returns the current travel ban, refreshed at most every ``travel_ban_ttl`` seconds."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        cache=None,
        session: Optional[requests.Session] = None,
    ):
        self.settings = settings or get_settings()
        self._cache = cache if cache is not None else TTLCache(self.settings.travel_ban_ttl, max_size=1)
        self._session = session or requests.Session()

    def fetch_travel_ban(self) -> TravelBan:
        cached = self._cache.get(CACHE_KEY)
        if cached is not None:
            logger.debug("Returning cached travel ban data")
            return cached

        ban = self._load()
        self._cache.set(CACHE_KEY, ban)
        return ban

    def _load(self) -> TravelBan:
        # TODO: swap in a structured NYC Emergency Management feed once one is published
        url = self.settings.travel_ban_url
        if not url:
            return TravelBan()

        try:
            response = self._session.get(
                url,
                headers={"User-Agent": self.settings.user_agent},
                timeout=self.settings.request_timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning(f"Failed to fetch travel ban page: {e}")
            return TravelBan()

        return parse_travel_ban_html(response.text)
