"""Data models for the StormSafe advisory pipeline."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

# The 22 NYC subway lines this system reports on
SUBWAY_LINES = (
    "A", "C", "E", "B", "D", "F", "M", "N", "Q", "R", "W",
    "1", "2", "3", "4", "5", "6", "7", "G", "J", "L", "S",
)

SEVERITY_LEVELS = ("none", "low", "moderate", "high", "extreme")

WEATHER_SEVERITIES = ("none", "light", "moderate", "severe", "extreme")

VERDICTS = ("Go for it", "Go if you have to", "Wait it out", "Stay in tonight")

RETURN_RISKS = ("low", "medium", "high", "unknown")


@dataclass
class Coordinates:
    """A latitude/longitude pair."""
    lat: float
    lng: float


@dataclass
class TripRequest:
    """What the traveler asked about."""
    origin: Coordinates
    origin_label: str
    destination_label: str
    origin_address: Optional[str] = None
    destination_address: Optional[str] = None
    destination: Optional[Coordinates] = None  # Skips geocoding when known
    departure_time: Optional[str] = None


@dataclass(frozen=True)
class AlertRecord:
    """One service alert reduced to what the pipeline needs."""
    affected_routes: Tuple[str, ...]
    message: Optional[str]
    severity: str  # none, low, moderate, high, extreme


@dataclass
class LineStatus:
    """Status of a single subway line or of PATH."""
    status: str = "normal"  # normal or delays
    message: Optional[str] = None

    @classmethod
    def from_message(cls, message: Optional[str]) -> "LineStatus":
        return cls(status="delays" if message else "normal", message=message)


@dataclass
class TransitStatus:
    """Merged subway and PATH status for one trip."""
    subway: Dict[str, LineStatus]
    path: Optional[LineStatus]
    summary: str
    severity: str = "none"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RouteStep:
    """A single turn-by-turn step kept as context for the model."""
    instruction: Optional[str]
    street: Optional[str]
    duration_sec: int


@dataclass
class TravelData:
    """Timing and routing facts derived from a directions response."""
    baseline_minutes: Optional[int]
    storm_minutes: Optional[int]
    distance_miles: Optional[float]
    distance_category: str  # walkable, short_transit, long_transit, unknown
    best_route: Optional[str]
    ferry_only_route: bool = False
    relevant_lines: List[str] = field(default_factory=list)
    route_steps: List[RouteStep] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["relevantLines"] = data.pop("relevant_lines")
        return data


@dataclass
class Precipitation:
    type: str  # rain or snow
    intensity: str  # light, moderate, heavy


@dataclass
class Wind:
    speed: int
    gusts: Optional[int] = None


@dataclass
class WeatherAlert:
    title: str
    severity: str


@dataclass
class ForecastTrend:
    trend: str  # worsening, improving, steady
    precip_expected: bool


@dataclass
class WeatherSnapshot:
    """Current conditions plus a short-range trend. Every field may be None."""
    precipitation: Optional[Precipitation] = None
    wind: Optional[Wind] = None
    visibility: Optional[float] = None  # km
    feels_like: Optional[int] = None  # Celsius
    alerts: Optional[List[WeatherAlert]] = None
    forecast_3hr: Optional[ForecastTrend] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TravelBan:
    """City travel restriction signal."""
    ban_level: str = "none"  # none, advisory, vehicle_ban, transit_suspended
    plain_english: Optional[str] = None
    affects_walking: bool = False
    affects_subway: bool = False
    affects_rideshare: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RecommendationPayload:
    """Everything the reasoning step sees for one request."""
    origin: Coordinates
    origin_name: str
    destination: Optional[Coordinates]
    destination_name: str
    departure_time: Optional[str]
    weather: WeatherSnapshot
    travel_ban: TravelBan
    transit_status: TransitStatus
    travel_data: Optional[TravelData]
    is_walkable: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "origin": asdict(self.origin),
            "origin_name": self.origin_name,
            "destination": asdict(self.destination) if self.destination else None,
            "destination_name": self.destination_name,
            "departure_time": self.departure_time,
            "weather": self.weather.to_dict(),
            "travel_ban": self.travel_ban.to_dict(),
            "transit_status": self.transit_status.to_dict(),
            "travel_data": self.travel_data.to_dict() if self.travel_data else None,
            "is_walkable": self.is_walkable,
        }


@dataclass(frozen=True)
class Recommendation:
    """The final verdict. Always structurally valid."""
    verdict: str
    reasons: Tuple[str, ...]
    return_risk: str
    best_route_advice: Optional[str]
    summary: str

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["reasons"] = list(self.reasons)
        return data


@dataclass
class Advisory:
    """Complete result handed to the presentation layer."""
    recommendation: Recommendation
    transit: TransitStatus
    travel_data: Optional[TravelData]
    weather: WeatherSnapshot
    travel_ban: TravelBan
