"""StormSafe - should you make this trip right now?"""

__version__ = "0.1.0"

from .models import (
    Advisory,
    Coordinates,
    LineStatus,
    Recommendation,
    TransitStatus,
    TravelData,
    TripRequest,
)
from .advisor import StormSafeAdvisor
from .mta_client import MTAClient
from .recommendation import RecommendationEngine, normalize_recommendation
from .transit_status import TransitStatusService
from .travel_data import TravelDataService

__all__ = [
    "StormSafeAdvisor",
    "MTAClient",
    "RecommendationEngine",
    "TransitStatusService",
    "TravelDataService",
    "normalize_recommendation",
    "Advisory",
    "Coordinates",
    "LineStatus",
    "Recommendation",
    "TransitStatus",
    "TravelData",
    "TripRequest",
]
