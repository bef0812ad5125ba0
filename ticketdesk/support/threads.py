"""Per-ticket conversation threads."""

from collections.abc import Iterable

from ticketdesk.support.models import Message, Ticket
from ticketdesk.utils.types import Direction, TicketId


class ThreadLedger:
    """Ordered, append-only message history keyed by ticket id.

    The ticket's own body is not part of the stored thread; ``conversation``
    synthesizes it as the first inbound message.
    """

    def __init__(self) -> None:
        self._threads: dict[TicketId, list[Message]] = {}

    def get(self, ticket_id: TicketId) -> list[Message]:
        return self._threads.setdefault(ticket_id, [])

    def append(self, ticket_id: TicketId, message: Message) -> None:
        self.get(ticket_id).append(message)

    def install(self, ticket_id: TicketId, messages: Iterable[Message]) -> None:
        self._threads[ticket_id] = list(messages)

    def conversation(self, ticket: Ticket) -> list[Message]:
        seed = Message(
            sender=ticket.sender,
            date=ticket.date,
            body=ticket.body,
            direction=Direction.INBOUND,
        )
        return [seed, *self.get(ticket.id)]
