"""As-loaded snapshot of each ticket, the reference for change detection."""

import logging
from collections.abc import Iterable

from ticketdesk.support.models import BaselineSnapshot, Ticket
from ticketdesk.utils.types import TicketId

logger = logging.getLogger(__name__)


class BaselineTracker:
    """Write-once map of ticket id to its as-loaded routing, status and categories."""

    def __init__(self) -> None:
        self._snapshots: dict[TicketId, BaselineSnapshot] = {}
        self._taken = False

    def snapshot(self, tickets: Iterable[Ticket]) -> None:
        if self._taken:
            raise RuntimeError("Baseline already captured for this load")

        for ticket in tickets:
            self._snapshots[ticket.id] = BaselineSnapshot(
                routing=str(ticket.routing),
                status=str(ticket.status),
                categories=tuple(ticket.categories),
            )
        self._taken = True
        logger.info("Captured baseline for %d tickets", len(self._snapshots))

    def get(self, ticket_id: TicketId) -> BaselineSnapshot | None:
        return self._snapshots.get(ticket_id)

    def __contains__(self, ticket_id: object) -> bool:
        return ticket_id in self._snapshots
