"""Ticket data model and pandera schema for the ticket frame."""

from dataclasses import dataclass, field
from typing import Self, TypedDict

import pandera as pa
from pandera import Column, Check

from ticketdesk.config import ALL
from ticketdesk.utils.types import (
    Direction,
    Histogram,
    MutationOutcome,
    Routing,
    SortKey,
    TicketId,
)

CATEGORY_SEPARATOR = " + "


class RawTicket(TypedDict, total=False):
    """Inbound record as it arrives from the feed. Only the normalizer reads it."""

    id: str | int
    subject: str
    body: str
    sender: str
    sport: str
    date: str
    status: str
    assignee: str
    confidence: float | str
    note: str
    categories: list[str]
    types: list[str]
    type: str


@dataclass
class Ticket:
    id: TicketId
    subject: str
    body: str
    sender: str
    sport: str
    date: str
    categories: list[str]
    routing: Routing
    status: str
    confidence: float
    note: str = ""

    @property
    def display_category(self) -> str:
        return CATEGORY_SEPARATOR.join(self.categories)


@dataclass(frozen=True)
class BaselineSnapshot:
    routing: str
    status: str
    categories: tuple[str, ...]


@dataclass
class Message:
    sender: str
    date: str
    body: str
    direction: Direction

    def to_dict(self) -> dict[str, str]:
        return {
            "from": self.sender,
            "date": self.date,
            "body": self.body,
            "direction": str(self.direction),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        match data.get("direction"):
            case "inbound" | "in":
                direction = Direction.INBOUND
            case _:
                direction = Direction.OUTBOUND
        return cls(
            sender=str(data.get("from", "")),
            date=str(data.get("date", "")),
            body=str(data.get("body", "")),
            direction=direction,
        )


@dataclass
class OverrideRecord:
    """Stored divergence of one ticket. ``None`` fields were absent or mistyped."""

    routing: str | None = None
    status: str | None = None
    note: str | None = None
    thread: list[Message] | None = None
    categories: list[str] | None = None

    def to_dict(self) -> dict:
        return {
            "routing": self.routing,
            "status": self.status,
            "note": self.note or "",
            "thread": [m.to_dict() for m in self.thread or []],
            "categories": list(self.categories or []),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        thread = data.get("thread")
        categories = data.get("categories")
        return cls(
            routing=data["routing"] if isinstance(data.get("routing"), str) else None,
            status=data["status"] if isinstance(data.get("status"), str) else None,
            note=data["note"] if isinstance(data.get("note"), str) else None,
            thread=(
                [Message.from_dict(m) for m in thread if isinstance(m, dict)]
                if isinstance(thread, list)
                else None
            ),
            categories=(
                [str(c) for c in categories if c is not None and str(c)]
                if isinstance(categories, list)
                else None
            ),
        )


@dataclass
class FilterConfiguration:
    query: str = ""
    month: str = ALL
    categories: set[str] = field(default_factory=set)
    routing: str = ALL
    status: str = ALL
    sort_key: SortKey = SortKey.DATE_DESC
    active_sport: str = ""

    @classmethod
    def defaults(cls, category_options: list[str], sport_order: tuple[str, ...]) -> Self:
        """Show-everything configuration: every known category selected."""
        return cls(
            categories=set(category_options),
            active_sport=sport_order[0] if sport_order else "",
        )


@dataclass(frozen=True)
class DashboardSummary:
    total: int
    solved: int
    open: int
    solved_pct: int
    open_pct: int
    by_category: Histogram
    by_routing: Histogram


@dataclass(frozen=True)
class MutationResult:
    outcome: MutationOutcome
    message: str = ""

    @property
    def changed(self) -> bool:
        return self.outcome is MutationOutcome.CHANGED


TicketFrameSchema = pa.DataFrameSchema(
    columns={
        "id": Column(str, nullable=False),
        "routing": Column(str, Check.isin([str(r) for r in Routing])),
        "status": Column(str, nullable=False),
        "date": Column(str, nullable=False),
        "categories": Column(object, Check(lambda v: isinstance(v, list), element_wise=True)),
        "display_category": Column(str, nullable=False),
        "confidence": Column(float, nullable=False),
    },
    coerce=True,
    strict=False,
)
