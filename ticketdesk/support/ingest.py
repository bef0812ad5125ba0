"""Ingest the raw ticket feed."""

import logging
from pathlib import Path

from ticketdesk.utils.io import read_json_file

logger = logging.getLogger(__name__)


class LoadShapeError(ValueError):
    """The feed payload is neither a list of tickets nor ``{"tickets": [...]}``."""


def extract_ticket_records(payload: object) -> list[object]:
    """Accept a bare list of tickets or an object wrapping one under ``tickets``."""
    match payload:
        case list() as records:
            return records
        case {"tickets": list() as records}:
            return records
        case _:
            raise LoadShapeError(
                "Ticket JSON must be an array of tickets (or {\"tickets\": [...]}), "
                f"got {type(payload).__name__}"
            )


def fetch_ticket_payload(path: Path) -> object:
    """Read the feed file; stands in for the dashboard's one-off fetch."""
    return read_json_file(path)


def load_ticket_feed(path: Path) -> list[object]:
    records = extract_ticket_records(fetch_ticket_payload(path))
    logger.info("Ingested %d raw tickets from %s", len(records), path)
    return records
