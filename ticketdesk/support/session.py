"""Triage session: owns the live tickets and applies operator intents.

A session is created per load. It holds the normalized tickets, the baseline
taken right after normalization, the conversation threads, the persisted
overrides and the current filter configuration. Every mutation goes through
``_commit`` so the override store is reconciled exactly once per change.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import fields, replace
from datetime import datetime
from pathlib import Path
from typing import Self

from ticketdesk.config import TriageConfig
from ticketdesk.support.baseline import BaselineTracker
from ticketdesk.support.dashboard import compute_dashboard, monthly_series
from ticketdesk.support.ingest import LoadShapeError, extract_ticket_records, fetch_ticket_payload
from ticketdesk.support.models import (
    CATEGORY_SEPARATOR,
    DashboardSummary,
    FilterConfiguration,
    Message,
    MutationResult,
    Ticket,
)
from ticketdesk.support.overrides import OverrideStore, categories_equal
from ticketdesk.support.query import (
    axis_order_for,
    group_tickets,
    month_options,
    visible_tickets,
)
from ticketdesk.support.threads import ThreadLedger
from ticketdesk.support.transform import clean_categories, normalize_tickets
from ticketdesk.utils.io import KeyValueStore
from ticketdesk.utils.types import (
    Direction,
    MutationOutcome,
    Routing,
    SeriesPoint,
    SortKey,
    ticket_id,
)

logger = logging.getLogger(__name__)

type Clock = Callable[[], datetime]

NO_CHANGE = "No change."

_FILTER_FIELDS = {f.name for f in fields(FilterConfiguration)}


def format_timestamp(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d %H:%M")


class TriageSession:
    def __init__(self, config: TriageConfig, store: KeyValueStore, clock: Clock = datetime.now) -> None:
        self.config = config
        self.clock = clock
        self.tickets: list[Ticket] = []
        self.baseline = BaselineTracker()
        self.threads = ThreadLedger()
        self.overrides = OverrideStore(store, config, self.baseline, self.threads)
        self.filters = FilterConfiguration.defaults(list(config.category_options), config.sport_order)
        self.load_error: str | None = None

    @classmethod
    def from_file(cls, path: Path, config: TriageConfig, store: KeyValueStore, clock: Clock = datetime.now) -> Self:
        session = cls(config, store, clock=clock)
        try:
            payload = fetch_ticket_payload(path)
        except (OSError, ValueError) as exc:
            session._fail_load(exc)
            return session
        session.load(payload)
        return session

    # -- loading -------------------------------------------------------------

    def _fail_load(self, exc: Exception) -> None:
        logger.error("Could not load tickets: %s", exc)
        self.tickets = []
        self.load_error = f"Could not load tickets JSON.\n\n{exc}"
        self.reset_filters()

    def load(self, payload: object) -> list[Ticket]:
        """Normalize, snapshot the baseline, then layer stored overrides on top."""
        try:
            records = extract_ticket_records(payload)
        except LoadShapeError as exc:
            self._fail_load(exc)
            return self.tickets

        self.load_error = None
        self.tickets = normalize_tickets(records, self.config)
        self.baseline.snapshot(self.tickets)

        stored = self.overrides.load()
        self.overrides.apply_to_tickets(stored, self.tickets)

        self.reset_filters()
        return self.tickets

    # -- lookups and views ---------------------------------------------------

    def get_ticket(self, id_: object) -> Ticket | None:
        key = ticket_id(id_)
        return next((t for t in self.tickets if t.id == key), None)

    def category_options(self) -> list[str]:
        """Configured categories extended with any new ones seen in the data."""
        options = list(self.config.category_options)
        for ticket in self.tickets:
            options.extend(ticket.categories)
        return clean_categories(options)

    def routing_options(self) -> list[Routing]:
        return [Routing.STAFF, Routing.HANDLER]

    def month_options(self) -> list[str]:
        return month_options(self.tickets)

    def visible_tickets(self) -> list[Ticket]:
        return visible_tickets(self.tickets, self.filters)

    def grouped_view(self) -> dict[str, list[Ticket]]:
        order = axis_order_for(self.filters.active_sport, self.config.sport_order)
        return group_tickets(self.visible_tickets(), order)

    def dashboard(self) -> DashboardSummary:
        return compute_dashboard(self.tickets, self.config)

    def monthly_series(self) -> list[SeriesPoint]:
        return monthly_series(self.tickets, self.config.monthly_series or None)

    def conversation(self, id_: object) -> list[Message]:
        ticket = self.get_ticket(id_)
        if ticket is None:
            return []
        return self.threads.conversation(ticket)

    # -- filter intents ------------------------------------------------------

    def apply_filter(self, **changes: object) -> FilterConfiguration:
        unknown = set(changes) - _FILTER_FIELDS
        if unknown:
            raise ValueError(f"Unknown filter fields: {sorted(unknown)}")
        if "categories" in changes:
            changes["categories"] = {str(c) for c in changes["categories"]}
        if "sort_key" in changes:
            changes["sort_key"] = SortKey(changes["sort_key"])
        self.filters = replace(self.filters, **changes)
        return self.filters

    def change_sort(self, key: SortKey | str) -> FilterConfiguration:
        return self.apply_filter(sort_key=key)

    def set_active_sport(self, sport: str) -> None:
        if sport not in self.config.sport_order:
            return
        self.filters.active_sport = sport

    def reset_filters(self) -> FilterConfiguration:
        self.filters = FilterConfiguration.defaults(self.category_options(), self.config.sport_order)
        return self.filters

    # -- mutation intents ----------------------------------------------------

    def append_note(self, ticket: Ticket, text: str, with_time: bool = True) -> None:
        line = f"{format_timestamp(self.clock())} • {text}" if with_time else str(text)
        previous = str(ticket.note or "").strip()
        ticket.note = f"{previous}\n{line}" if previous else line

    def _commit(self, ticket: Ticket, note: str, message: str) -> MutationResult:
        self.append_note(ticket, note)
        self.overrides.reconcile(ticket)
        logger.info("Ticket %s: %s", ticket.id, note)
        return MutationResult(MutationOutcome.CHANGED, message)

    def send_reply(self, id_: object, text: str) -> MutationResult:
        ticket = self.get_ticket(id_)
        if ticket is None:
            return MutationResult(MutationOutcome.NOT_FOUND)

        body = str(text or "").strip()
        if not body:
            return MutationResult(MutationOutcome.REJECTED, "Write a reply first.")

        self.threads.append(ticket.id, Message(
            sender=self.config.reply_sender,
            date=format_timestamp(self.clock()),
            body=body,
            direction=Direction.OUTBOUND,
        ))
        return self._commit(ticket, "Reply sent", "Reply sent.")

    def change_routing(self, id_: object, routing: Routing | str) -> MutationResult:
        try:
            target = Routing(routing)
        except ValueError:
            raise ValueError(f"Unknown routing: {routing!r}") from None

        ticket = self.get_ticket(id_)
        if ticket is None:
            return MutationResult(MutationOutcome.NOT_FOUND)
        if str(ticket.routing) == str(target):
            return MutationResult(MutationOutcome.UNCHANGED, NO_CHANGE)

        ticket.routing = target
        return self._commit(ticket, f"Routing changed to {target}", "Routing updated.")

    def escalate(self, id_: object) -> MutationResult:
        """Manual escalation to the handler; deliberately ignores confidence."""
        return self.change_routing(id_, Routing.HANDLER)

    def change_status(self, id_: object, status: str) -> MutationResult:
        new_status = str(status)
        if new_status not in self.config.statuses:
            raise ValueError(f"Unknown status: {status!r}")

        ticket = self.get_ticket(id_)
        if ticket is None:
            return MutationResult(MutationOutcome.NOT_FOUND)
        if str(ticket.status) == new_status:
            return MutationResult(MutationOutcome.UNCHANGED, NO_CHANGE)

        ticket.status = new_status
        return self._commit(ticket, f"Status changed to {new_status}", "Status updated.")

    def change_categories(self, id_: object, categories: Iterable[object]) -> MutationResult:
        ticket = self.get_ticket(id_)
        if ticket is None:
            return MutationResult(MutationOutcome.NOT_FOUND)

        selected = clean_categories(categories) or [self.config.fallback_category]
        if categories_equal(selected, ticket.categories):
            return MutationResult(MutationOutcome.UNCHANGED, NO_CHANGE)

        ticket.categories = selected
        label = CATEGORY_SEPARATOR.join(selected)
        return self._commit(ticket, f"Categories changed to {label}", "Categories updated.")
