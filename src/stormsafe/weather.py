"""Current conditions and short-range trend from OpenWeatherMap."""

import logging
from typing import Any, Dict, List, Optional

import requests

from .config import Settings, get_settings
from .models import ForecastTrend, Precipitation, WeatherAlert, WeatherSnapshot, Wind

logger = logging.getLogger(__name__)


def map_intensity(mm_per_hour: float) -> str:
    """Precipitation intensity bucket from mm/hr."""
    if mm_per_hour < 2.5:
        return "light"
    if mm_per_hour <= 10:
        return "moderate"
    return "heavy"


def _amount(data: Optional[Dict[str, Any]], kind: str, window: str) -> float:
    block = (data or {}).get(kind)
    if isinstance(block, dict):
        return float(block.get(window) or 0)
    return 0.0


def process_precipitation(current: Optional[Dict[str, Any]]) -> Optional[Precipitation]:
    if not current:
        return None

    snow = _amount(current, "snow", "1h")
    rain = _amount(current, "rain", "1h")
    if snow == 0 and rain == 0:
        return None

    # Snow wins only when heavier than rain
    kind = "snow" if snow > rain else "rain"
    return Precipitation(type=kind, intensity=map_intensity(max(snow, rain)))


def process_wind(current: Optional[Dict[str, Any]]) -> Optional[Wind]:
    wind = (current or {}).get("wind")
    if not isinstance(wind, dict):
        return None

    speed = round(wind.get("speed") or 0)
    gusts = round(wind["gust"]) if wind.get("gust") else None
    if speed == 0 and not gusts:
        return None
    return Wind(speed=speed, gusts=gusts)


def process_visibility(current: Optional[Dict[str, Any]]) -> Optional[float]:
    """Visibility in km (provider reports meters)."""
    meters = (current or {}).get("visibility")
    if not meters:
        return None
    return round(meters / 1000, 1)


def process_feels_like(current: Optional[Dict[str, Any]]) -> Optional[int]:
    # Current-weather responses nest feels_like under "main"
    main = (current or {}).get("main")
    value = main.get("feels_like") if isinstance(main, dict) else None
    if value is None:
        value = (current or {}).get("feels_like")
    return round(value) if value is not None else None


def map_alert_severity(event: str) -> str:
    event = (event or "").lower()
    if "warn" in event or "watch" in event or "storm" in event:
        return "extreme"
    if "advisory" in event:
        return "high"
    return "moderate"


def process_alerts(current: Optional[Dict[str, Any]]) -> Optional[List[WeatherAlert]]:
    alerts = (current or {}).get("alerts")
    if not isinstance(alerts, list) or not alerts:
        return None
    return [
        WeatherAlert(
            title=alert.get("event") or "Weather Alert",
            severity=map_alert_severity(alert.get("event")),
        )
        for alert in alerts
        if isinstance(alert, dict)
    ]


def process_forecast(
    current: Optional[Dict[str, Any]],
    forecast: Optional[Dict[str, Any]],
) -> Optional[ForecastTrend]:
    """Compare the next 3-hour forecast block with current precipitation."""
    entries = (forecast or {}).get("list")
    if not isinstance(entries, list) or not entries:
        return None

    now = _amount(current, "rain", "1h") or _amount(current, "snow", "1h")
    next_block = entries[0] if isinstance(entries[0], dict) else {}
    upcoming = _amount(next_block, "rain", "3h") or _amount(next_block, "snow", "3h")

    trend = "steady"
    if upcoming > now * 1.5:
        trend = "worsening"
    elif upcoming < now * 0.75:
        trend = "improving"

    return ForecastTrend(trend=trend, precip_expected=upcoming > 0)


class WeatherClient:
    """Fetches and condenses OpenWeatherMap data."""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or get_settings()
        self._session = session or requests.Session()

    def _get(self, endpoint: str, lat: float, lng: float) -> Optional[Dict[str, Any]]:
        try:
            response = self._session.get(
                f"{self.settings.openweather_base_url}/{endpoint}",
                params={
                    "lat": lat,
                    "lon": lng,
                    "appid": self.settings.openweather_api_key,
                    "units": "metric",
                },
                timeout=self.settings.request_timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"Weather {endpoint} request failed: {e}")
            return None

        if not response.ok:
            logger.warning(f"Weather {endpoint} returned {response.status_code}")
            return None
        try:
            return response.json()
        except ValueError:
            logger.warning(f"Weather {endpoint} returned invalid JSON")
            return None

    def fetch_weather(self, lat: float, lng: float) -> WeatherSnapshot:
        """
        Get current conditions and trend for a location.

        Returns:
            WeatherSnapshot; all fields None when the key is missing or both
            requests fail.
        """
        if not self.settings.openweather_api_key:
            logger.warning("OpenWeather API key not configured")
            return WeatherSnapshot()

        current = self._get("weather", lat, lng)
        forecast = self._get("forecast", lat, lng)

        try:
            return WeatherSnapshot(
                precipitation=process_precipitation(current),
                wind=process_wind(current),
                visibility=process_visibility(current),
                feels_like=process_feels_like(current),
                alerts=process_alerts(current),
                forecast_3hr=process_forecast(current, forecast),
            )
        except (AttributeError, TypeError, ValueError) as e:
            logger.error(f"Failed to process weather data: {e}", exc_info=True)
            return WeatherSnapshot()
