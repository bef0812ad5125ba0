"""Persisted per-ticket overrides and their reconciliation against the baseline.

The store holds one JSON object, keyed by ticket id, under a single key of a
``KeyValueStore``. An entry exists only while its ticket diverges from the
baseline or carries a note or thread; ``reconcile`` is the single place that
adds, replaces or removes entries, and it always writes the whole map.
"""

import json
import logging
from collections.abc import Iterable

from ticketdesk.config import TriageConfig
from ticketdesk.support.baseline import BaselineTracker
from ticketdesk.support.models import OverrideRecord, Ticket
from ticketdesk.support.routing import classify_routing
from ticketdesk.support.threads import ThreadLedger
from ticketdesk.support.transform import clean_categories
from ticketdesk.utils.io import KeyValueStore
from ticketdesk.utils.types import TicketId, ticket_id

logger = logging.getLogger(__name__)

type OverrideMap = dict[TicketId, OverrideRecord]


def categories_equal(a: Iterable[object], b: Iterable[object]) -> bool:
    """Order-sensitive, pairwise string comparison."""
    left = [str(x) for x in a]
    right = [str(x) for x in b]
    return left == right


class OverrideStore:
    def __init__(
        self,
        store: KeyValueStore,
        config: TriageConfig,
        baseline: BaselineTracker,
        threads: ThreadLedger,
    ) -> None:
        self.store = store
        self.config = config
        self.baseline = baseline
        self.threads = threads
        self.overrides: OverrideMap = {}

    def load(self) -> OverrideMap:
        """Read the persisted map; corrupt or foreign content reads as empty."""
        try:
            raw = self.store.get(self.config.storage_key)
            if raw is None:
                self.overrides = {}
                return self.overrides
            data = json.loads(raw)
        except (ValueError, TypeError) as exc:
            # ValueError covers both JSONDecodeError and UnicodeDecodeError
            logger.warning("Ignoring unreadable override store %s: %s", self.config.storage_key, exc)
            data = {}

        if not isinstance(data, dict):
            logger.warning("Ignoring override store holding %s instead of an object", type(data).__name__)
            data = {}

        overrides: OverrideMap = {}
        for key, value in data.items():
            if not isinstance(value, dict):
                logger.warning("Dropping malformed override for ticket %s", key)
                continue
            overrides[ticket_id(key)] = OverrideRecord.from_dict(value)

        self.overrides = overrides
        logger.info("Loaded %d stored overrides", len(overrides))
        return overrides

    def save(self, overrides: OverrideMap | None = None) -> None:
        if overrides is not None:
            self.overrides = overrides
        payload = {str(k): v.to_dict() for k, v in self.overrides.items()}
        self.store.set(self.config.storage_key, json.dumps(payload, ensure_ascii=False))

    def has_changes(self, ticket: Ticket) -> bool:
        has_thread = len(self.threads.get(ticket.id)) > 0
        has_note = bool(str(ticket.note or "").strip())

        snapshot = self.baseline.get(ticket.id)
        if snapshot is None:
            logger.warning("No baseline for ticket %s; comparing note and thread only", ticket.id)
            return has_thread or has_note

        routing_changed = str(ticket.routing) != snapshot.routing
        status_changed = str(ticket.status) != snapshot.status
        categories_changed = not categories_equal(ticket.categories, snapshot.categories)

        return routing_changed or status_changed or categories_changed or has_thread or has_note

    def reconcile(self, ticket: Ticket) -> bool:
        """Store or drop the ticket's override; returns whether one is now stored."""
        if not self.has_changes(ticket):
            if self.overrides.pop(ticket.id, None) is not None:
                logger.info("Ticket %s is back at baseline, override removed", ticket.id)
            self.save()
            return False

        self.overrides[ticket.id] = OverrideRecord(
            routing=str(ticket.routing),
            status=str(ticket.status),
            note=ticket.note or "",
            thread=list(self.threads.get(ticket.id)),
            categories=list(ticket.categories),
        )
        self.save()
        return True

    def apply_to_tickets(self, overrides: OverrideMap, tickets: Iterable[Ticket]) -> int:
        """Layer stored overrides onto freshly loaded tickets.

        Stored routing is re-classified, so it never bypasses the confidence
        threshold on reload.
        """
        by_id: dict[TicketId, Ticket] = {}
        for ticket in tickets:
            # First occurrence wins, as in TriageSession.get_ticket
            by_id.setdefault(ticket.id, ticket)
        applied = 0

        for key, record in overrides.items():
            ticket = by_id.get(key)
            if ticket is None:
                logger.debug("Stored override for unknown ticket %s left untouched", key)
                continue

            hint: object = ticket.routing
            if record.routing is not None:
                hint = record.routing
            if record.status is not None:
                ticket.status = record.status
            if record.note is not None:
                ticket.note = record.note
            if record.categories is not None:
                ticket.categories = clean_categories(record.categories)
            if record.thread is not None:
                self.threads.install(ticket.id, record.thread)

            ticket.routing = classify_routing(hint, ticket.confidence, self.config)
            applied += 1

        logger.info("Applied %d of %d stored overrides", applied, len(overrides))
        return applied
