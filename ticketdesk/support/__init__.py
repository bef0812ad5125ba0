"""Support triage domain: normalization, routing, overrides, queries and dashboard."""

from pathlib import Path

from ticketdesk.config import TriageConfig, load_triage_config
from ticketdesk.support.ingest import LoadShapeError, load_ticket_feed
from ticketdesk.support.models import TicketFrameSchema
from ticketdesk.support.query import tickets_frame
from ticketdesk.support.session import TriageSession
from ticketdesk.support.transform import normalize_tickets
from ticketdesk.utils.io import FileStore, KeyValueStore
from ticketdesk.utils.validators import validate_dataframe, validate_unique


def validate(path: Path | None = None, config: TriageConfig | None = None) -> dict:
    """Validate the ticket feed before a session is opened on it."""
    config = config or load_triage_config()
    path = path or config.data_file
    try:
        records = load_ticket_feed(path)
        frame = tickets_frame(normalize_tickets(records, config))
        if frame.empty:
            return {"status": "ok", "row_count": 0}

        for outcome in (
            validate_dataframe(frame, TicketFrameSchema),
            validate_unique(frame, ["id"]),
        ):
            match outcome:
                case {"valid": False, "errors": errors}:
                    return {"status": "error", "message": "; ".join(errors)}
        return {"status": "ok", "row_count": len(frame)}
    except (FileNotFoundError, LoadShapeError) as exc:
        return {"status": "error", "message": str(exc)}
    except ValueError as exc:
        return {"status": "error", "message": f"Validation failed: {exc}"}


def run(
    path: Path | None = None,
    config: TriageConfig | None = None,
    store: KeyValueStore | None = None,
) -> TriageSession:
    """Open a triage session on the configured feed and override store."""
    config = config or load_triage_config()
    store = store or FileStore(config.storage_dir)
    return TriageSession.from_file(path or config.data_file, config, store)
