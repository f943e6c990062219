"""Turn untrusted model text into a valid Recommendation."""

import json
import logging
import re
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from .exceptions import ReasoningContractViolation, StormSafeError
from .llm_client import LLMClient
from .models import (
    RETURN_RISKS,
    VERDICTS,
    Recommendation,
    RecommendationPayload,
    TransitStatus,
    TravelData,
)
from .prompts import SYSTEM_PROMPT

logger = logging.getLogger(__name__)

SAFE_VERDICT = "Wait it out"

# Field aliases, canonical name first
VERDICT_FIELDS = ("verdict", "recommendation", "decision")
REASON_FIELDS = ("reasons", "key_factors", "risk_factors", "factors")
RETURN_RISK_FIELDS = ("return_risk", "risk_level", "travel_risk")
ROUTE_ADVICE_FIELDS = ("best_route_advice", "transit_advice", "route_advice")
SUMMARY_FIELDS = ("summary", "reasoning", "transit_advice", "explanation")

FILLER_REASONS = (
    "Unable to fully assess conditions",
    "Check conditions again before heading out",
)
FALLBACK_SUMMARY = "Unable to provide summary"

DEFAULT_RECOMMENDATION = Recommendation(
    verdict=SAFE_VERDICT,
    reasons=(
        "Unable to assess conditions, consider waiting",
        "Live weather and transit data could not be checked",
    ),
    return_risk="high",
    best_route_advice="Stay home or postpone your trip until conditions improve.",
    summary="Sorry, we couldn't check conditions right now. Travel is not recommended at this time.",
)

_OPENING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_CLOSING_FENCE = re.compile(r"\s*```$")


def extract_json(text: str) -> Any:
    """
    Parse JSON out of model text, tolerating code fences and surrounding prose.

    Raises:
        ReasoningContractViolation: If no JSON can be parsed.
    """
    if not isinstance(text, str):
        raise ReasoningContractViolation("Model response is not text")

    cleaned = _CLOSING_FENCE.sub("", _OPENING_FENCE.sub("", text.strip()))

    first = cleaned.find("{")
    last = cleaned.rfind("}")
    if first != -1 and last > first:
        cleaned = cleaned[first:last + 1]

    try:
        return json.loads(cleaned)
    except (ValueError, RecursionError) as e:
        raise ReasoningContractViolation(f"Model response is not JSON: {e}") from e


def _first_present(parsed: Dict[str, Any], fields: Sequence[str]) -> Any:
    for name in fields:
        value = parsed.get(name)
        if value is not None and value != "":
            return value
    return None


def _normalize_verdict(parsed: Dict[str, Any]) -> str:
    verdict = _first_present(parsed, VERDICT_FIELDS)
    if isinstance(verdict, bool):
        verdict = "Go for it" if verdict else "Stay in tonight"
    if verdict not in VERDICTS:
        return SAFE_VERDICT
    return verdict


def _normalize_reasons(parsed: Dict[str, Any]) -> Tuple[str, ...]:
    reasons: list = []
    for name in REASON_FIELDS:
        if isinstance(parsed.get(name), list):
            reasons = parsed[name]
            break

    reasons = [r if isinstance(r, str) else str(r) for r in reasons[:3]]
    for filler in FILLER_REASONS:
        if len(reasons) >= 2:
            break
        reasons.append(filler)
    return tuple(reasons)


def _normalize_return_risk(parsed: Dict[str, Any]) -> str:
    risk = _first_present(parsed, RETURN_RISK_FIELDS)
    return risk if risk in RETURN_RISKS else "unknown"


def _normalize_route_advice(parsed: Dict[str, Any]) -> Optional[str]:
    advice = _first_present(parsed, ROUTE_ADVICE_FIELDS)
    return advice if isinstance(advice, str) else None


def _normalize_summary(parsed: Dict[str, Any]) -> str:
    summary = _first_present(parsed, SUMMARY_FIELDS)
    return summary if isinstance(summary, str) else FALLBACK_SUMMARY


def normalize_recommendation(parsed: Any) -> Recommendation:
    """
    Map whatever the model produced onto the Recommendation schema.

    Each field is resolved independently through its alias list and validated.
    Never raises: anything that is not a dict is treated as an empty object.
    """
    if not isinstance(parsed, dict):
        parsed = {}

    return Recommendation(
        verdict=_normalize_verdict(parsed),
        reasons=_normalize_reasons(parsed),
        return_risk=_normalize_return_risk(parsed),
        best_route_advice=_normalize_route_advice(parsed),
        summary=_normalize_summary(parsed),
    )


def parse_recommendation(text: str) -> Recommendation:
    """Raw model text to Recommendation; the safe default if nothing parses."""
    try:
        parsed = extract_json(text)
    except ReasoningContractViolation as e:
        logger.error(f"Failed to parse model response: {e}. Raw response: {str(text)[:300]}")
        return DEFAULT_RECOMMENDATION
    return normalize_recommendation(parsed)


def build_transit_summary(transit: Optional[TransitStatus]) -> str:
    """Plain-language list of the lines with issues, quoted from the feed."""
    lines = []
    if transit is not None:
        for line, info in transit.subway.items():
            if info.message:
                lines.append(f"{line} train: {info.message}")
        if transit.path and transit.path.status != "normal" and transit.path.message:
            lines.append(f"PATH: {transit.path.message}")
    return ". ".join(lines) if lines else "All lines running normally"


def strip_transit_status(transit: Optional[TransitStatus]) -> Dict[str, Any]:
    """Transit status reduced to lines with issues."""
    problems: Dict[str, Any] = {}
    if transit is not None:
        for line, info in transit.subway.items():
            if info.status != "normal" or info.message:
                problems[line] = {"status": info.status, "message": info.message}

    path = transit.path if transit is not None else None
    subway: Union[str, Dict[str, Any]] = problems if problems else "All lines normal"
    return {
        "subway": subway,
        "path": {"status": path.status, "message": path.message} if path else None,
        "summary": transit.summary if transit is not None else "Good service on all lines",
    }


def build_route_context(travel: Optional[TravelData]) -> str:
    """Directive limiting which transit options the model may mention."""
    if travel is None:
        return ""
    if travel.ferry_only_route:
        return (
            "ROUTE CONTEXT: This trip has no subway or PATH option. Do not suggest any route. "
            "Tell the user transit options are very limited for this specific trip."
        )
    if travel.relevant_lines:
        return (
            f"ROUTE CONTEXT: The relevant subway lines for this trip are: "
            f"{', '.join(travel.relevant_lines)}. "
            f"Only reference these specific lines in your reasons and route advice."
        )
    return ""


def build_user_message(payload: RecommendationPayload) -> str:
    transit_summary = build_transit_summary(payload.transit_status)
    logger.debug(f"Transit summary sent to model: {transit_summary}")

    route_context = build_route_context(payload.travel_data)
    parts = [f"Current transit conditions on user's route: {transit_summary}"]
    if route_context:
        parts.append(f"\n{route_context}")
    parts.append("LIVE TRANSIT DATA (lines with issues only, all others normal):")
    parts.append(json.dumps(strip_transit_status(payload.transit_status), indent=2))
    parts.append("\nFULL TRAVEL CONTEXT:")
    parts.append(json.dumps(payload.to_dict(), indent=2, default=str))
    return "\n".join(parts)


class RecommendationEngine:
    """Asks the model for a verdict and enforces the output schema."""

    def __init__(self, llm: Optional[LLMClient] = None):
        self.llm = llm or LLMClient()

    def get_recommendation(self, payload: RecommendationPayload) -> Recommendation:
        """
        Get a recommendation for a fused payload.

        Returns:
            A valid Recommendation; the safe default when the model call fails.
        """
        try:
            text = self.llm.complete(SYSTEM_PROMPT, build_user_message(payload))
        except StormSafeError as e:
            logger.error(f"Recommendation request failed: {e}")
            return DEFAULT_RECOMMENDATION
        except Exception as e:
            logger.error(f"Recommendation request failed: {e}", exc_info=True)
            return DEFAULT_RECOMMENDATION

        try:
            return parse_recommendation(text)
        except Exception as e:
            logger.error(f"Recommendation parsing failed: {e}", exc_info=True)
            return DEFAULT_RECOMMENDATION
