"""Confidence-gated routing between the staff queue and the senior handler."""

import logging
import math

from ticketdesk.config import FIELD_DEFAULTS, TriageConfig
from ticketdesk.utils.types import Routing

logger = logging.getLogger(__name__)


def coerce_confidence(value: object) -> float:
    """Parse a raw confidence; anything non-numeric becomes the default."""
    default = float(FIELD_DEFAULTS["confidence"])
    if value is None:
        return default
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(confidence):
        return default
    return confidence


def classify_routing(hint: object, confidence: float, config: TriageConfig) -> Routing:
    """Route to the handler only on an explicit, confident hint.

    Low-confidence or ambiguous hints always fall back to the staff queue.
    """
    wants_handler = str(hint or "").strip() == Routing.HANDLER
    confident_enough = confidence >= config.handler_confidence_threshold

    match (wants_handler, confident_enough):
        case (True, True):
            return Routing.HANDLER
        case (True, False):
            logger.debug("Handler hint below threshold (%.2f), routing to staff", confidence)
            return Routing.STAFF
        case _:
            return Routing.STAFF
