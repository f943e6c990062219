"""Normalize MTA service alerts into per-line status."""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .models import SEVERITY_LEVELS, SUBWAY_LINES, AlertRecord, LineStatus

logger = logging.getLogger(__name__)

# GTFS-Realtime effect code -> severity bucket
EFFECT_SEVERITY = {
    "NO_SERVICE": "extreme",
    "REDUCED_SERVICE": "high",
    "SIGNIFICANT_DELAYS": "high",
    "DETOUR": "moderate",
    "OTHER_EFFECT": "moderate",
    "UNKNOWN_EFFECT": "moderate",
    "STOP_MOVED": "low",
}

_SEVERITY_RANK = {level: rank for rank, level in enumerate(SEVERITY_LEVELS)}


def map_severity(effect: Optional[str]) -> str:
    """
    Map an alert effect code to a severity bucket.

    Absent or empty codes map to "none"; unrecognized codes map to "moderate".
    """
    if not effect:
        return "none"
    return EFFECT_SEVERITY.get(str(effect), "moderate")


def severity_rank(severity: str) -> int:
    """Ordinal rank of a severity bucket (unknown buckets rank as "none")."""
    return _SEVERITY_RANK.get(severity, 0)


def _nonempty(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _translated(field: str) -> Callable[[dict], Optional[str]]:
    # {"header_text": {"translation": [{"text": ...}]}}
    def extract(alert: dict) -> Optional[str]:
        text = alert.get(field)
        if not isinstance(text, dict):
            return None
        translations = text.get("translation")
        if isinstance(translations, list) and translations and isinstance(translations[0], dict):
            return _nonempty(translations[0].get("text"))
        return None

    extract.__name__ = f"translated_{field}"
    return extract


def _listed(field: str) -> Callable[[dict], Optional[str]]:
    # {"header_text": [{"text": ...}]}
    def extract(alert: dict) -> Optional[str]:
        text = alert.get(field)
        if isinstance(text, list) and text and isinstance(text[0], dict):
            return _nonempty(text[0].get("text"))
        return None

    extract.__name__ = f"listed_{field}"
    return extract


def _flat(field: str) -> Callable[[dict], Optional[str]]:
    # {"header_text": {"text": ...}}
    def extract(alert: dict) -> Optional[str]:
        text = alert.get(field)
        if isinstance(text, dict):
            return _nonempty(text.get("text"))
        return None

    extract.__name__ = f"flat_{field}"
    return extract


def _plain(field: str) -> Callable[[dict], Optional[str]]:
    # {"header_text": "..."}
    def extract(alert: dict) -> Optional[str]:
        return _nonempty(alert.get(field))

    extract.__name__ = f"plain_{field}"
    return extract


# Tried in order; the first extractor returning text wins. Header text is
# the short rider-facing line, so it is preferred over the description.
MESSAGE_EXTRACTORS: Tuple[Callable[[dict], Optional[str]], ...] = (
    _translated("header_text"),
    _listed("header_text"),
    _flat("header_text"),
    _plain("header_text"),
    _translated("description_text"),
    _listed("description_text"),
    _flat("description_text"),
    _plain("description_text"),
)


def pick_alert_text(alert: Any) -> Optional[str]:
    """Extract a readable message from any of the alert shapes seen in the feed."""
    if isinstance(alert, str):
        return _nonempty(alert)
    if not isinstance(alert, dict):
        return None

    for extractor in MESSAGE_EXTRACTORS:
        message = extractor(alert)
        if message:
            return message
    return None


def pick_routes(alert: Any) -> Tuple[str, ...]:
    """
    Extract affected route IDs from an alert's informed entities.

    Route can be specified directly in route_id or in trip.route_id.
    Order is preserved and duplicates dropped.
    """
    if not isinstance(alert, dict):
        return ()
    entities = alert.get("informed_entity")
    if not isinstance(entities, list):
        return ()

    routes: List[str] = []
    for entity in entities:
        if not isinstance(entity, dict):
            continue
        route_id = entity.get("route_id")
        if not route_id and isinstance(entity.get("trip"), dict):
            route_id = entity["trip"].get("route_id")
        if isinstance(route_id, str) and route_id and route_id not in routes:
            routes.append(route_id)
    return tuple(routes)


def normalize_alert(alert: Any) -> Optional[AlertRecord]:
    """Reduce a raw alert to an AlertRecord, or None if it is not an alert."""
    if isinstance(alert, str):
        return AlertRecord(affected_routes=(), message=pick_alert_text(alert), severity="none")
    if not isinstance(alert, dict):
        return None
    return AlertRecord(
        affected_routes=pick_routes(alert),
        message=pick_alert_text(alert),
        severity=map_severity(alert.get("effect")),
    )


def init_subway_status() -> Dict[str, LineStatus]:
    """Every known line in good service."""
    return {line: LineStatus() for line in SUBWAY_LINES}


def process_alerts(
    feed: Any,
    route_ids: Optional[Iterable[str]] = None,
) -> Tuple[Dict[str, LineStatus], str]:
    """
    Turn an alert feed into per-line status and the worst severity seen.

    Args:
        feed: Decoded feed, expected as {"entity": [{"alert": {...}}, ...]}.
        route_ids: Optional route IDs; alerts touching none of them are skipped.

    Returns:
        (subway_status, max_severity). Any line with an alert message is marked
        "delays" regardless of the alert's effect code.
    """
    subway_status = init_subway_status()
    max_severity = "none"

    if not isinstance(feed, dict):
        return subway_status, max_severity

    entities = feed.get("entity")
    if not isinstance(entities, list):
        logger.warning("Alert feed has no entity list")
        return subway_status, max_severity

    requested = set(route_ids) if route_ids else None
    logger.debug(f"Processing {len(entities)} alert entities")

    for entity in entities:
        try:
            if not isinstance(entity, dict) or not entity.get("alert"):
                continue

            record = normalize_alert(entity["alert"])
            if record is None:
                continue

            if requested is not None and not requested.intersection(record.affected_routes):
                continue

            if severity_rank(record.severity) > severity_rank(max_severity):
                max_severity = record.severity

            if not record.message:
                continue

            for route_id in record.affected_routes:
                if route_id in subway_status:
                    logger.debug(f"Alert for route {route_id}: {record.message[:50]}")
                    subway_status[route_id] = LineStatus.from_message(record.message)
        except Exception as e:
            logger.warning(f"Skipping malformed alert entity: {e}")

    return subway_status, max_severity
