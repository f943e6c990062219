"""Runtime configuration loaded from the environment or a .env file."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # OpenWeatherMap
    openweather_api_key: str = ""
    openweather_base_url: str = "https://api.openweathermap.org/data/2.5"

    # Mapbox
    mapbox_token: str = ""
    mapbox_base_url: str = "https://api.mapbox.com"

    # Anthropic
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    anthropic_max_tokens: int = 1000

    # MTA service alerts (JSON or GTFS-Realtime protobuf)
    mta_alerts_url: str = (
        "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/camsys%2Fsubway-alerts.json"
    )
    mta_api_key: str = ""

    # PATH real-time arrivals
    path_url: str = "https://www.panynj.gov/bin/portauthority/ridepath.json"

    # NYC Emergency Management page; empty means no ban source is configured
    travel_ban_url: str = ""

    # HTTP
    request_timeout: float = 10.0
    user_agent: str = "StormSafe/1.0"

    # Caching (seconds)
    feed_cache_ttl: int = 30
    travel_ban_ttl: int = 10 * 60

    # Weather bucket used for storm travel-time projection
    default_weather_severity: str = "moderate"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
