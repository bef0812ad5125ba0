"""Normalize raw ticket records into the canonical ticket shape."""

import logging
import re
from collections.abc import Iterable, Mapping, Sequence

from ticketdesk.config import TriageConfig
from ticketdesk.support.models import RawTicket, Ticket
from ticketdesk.support.routing import classify_routing, coerce_confidence
from ticketdesk.utils.types import Routing, ticket_id

logger = logging.getLogger(__name__)

_LEGACY_TYPE_SPLIT = re.compile(r"[,;+]")


def _text(raw: Mapping, key: str, config: TriageConfig) -> str:
    value = raw.get(key)
    if value is None:
        return str(config.defaults[key])
    return str(value)


def clean_categories(values: Iterable[object]) -> list[str]:
    """Stringify, trim and drop empties, keeping first occurrences only."""
    cleaned = (str(v).strip() for v in values if v is not None)
    return list(dict.fromkeys(c for c in cleaned if c))


def split_legacy_type(raw_type: object) -> list[str]:
    """Split the legacy single ``type`` string (``"Size + Delivery"`` etc.)."""
    if not isinstance(raw_type, str):
        return []
    parts = clean_categories(_LEGACY_TYPE_SPLIT.split(raw_type))
    if not parts and raw_type.strip():
        return [raw_type.strip()]
    return parts


def _raw_categories(raw: Mapping) -> list[str]:
    for key in ("categories", "types"):
        value = raw.get(key)
        if isinstance(value, Sequence) and not isinstance(value, str):
            return clean_categories(value)
    return split_legacy_type(raw.get("type"))


def normalize_ticket(raw: RawTicket | Mapping, config: TriageConfig) -> Ticket:
    """Build a canonical ticket from one raw record.

    Missing fields degrade to ``config.defaults``; the raw ``assignee`` is only
    a hint and routing is always recomputed.
    """
    confidence = coerce_confidence(raw.get("confidence"))
    note = raw.get("note")

    return Ticket(
        id=ticket_id(_text(raw, "id", config)),
        subject=_text(raw, "subject", config),
        body=_text(raw, "body", config),
        sender=_text(raw, "sender", config),
        sport=_text(raw, "sport", config),
        date=_text(raw, "date", config),
        categories=_raw_categories(raw),
        routing=classify_routing(raw.get("assignee"), confidence, config),
        status=_text(raw, "status", config),
        confidence=confidence,
        note=note if isinstance(note, str) else str(config.defaults["note"]),
    )


def renormalize(ticket: Ticket, config: TriageConfig) -> Ticket:
    """Run an already canonical ticket through normalization again."""
    ticket.categories = clean_categories(ticket.categories)
    ticket.confidence = coerce_confidence(ticket.confidence)
    ticket.routing = classify_routing(ticket.routing, ticket.confidence, config)
    return ticket


def normalize_tickets(records: Iterable[object], config: TriageConfig) -> list[Ticket]:
    """Normalize a batch of raw records, skipping entries that are not objects."""
    tickets: list[Ticket] = []
    skipped = 0
    for record in records:
        if not isinstance(record, Mapping):
            skipped += 1
            continue
        tickets.append(normalize_ticket(record, config))

    if skipped:
        logger.warning("Skipped %d feed entries that were not ticket objects", skipped)

    logger.info(
        "Normalized %d tickets - %d routed to %s, %d without categories",
        len(tickets),
        sum(1 for t in tickets if t.routing is Routing.HANDLER),
        Routing.HANDLER,
        sum(1 for t in tickets if not t.categories),
    )
    return tickets
