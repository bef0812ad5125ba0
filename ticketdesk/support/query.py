"""Filter, sort and group the live ticket collection."""

import logging
from collections.abc import Sequence

import pandas as pd

from ticketdesk.config import ALL
from ticketdesk.support.models import FilterConfiguration, Ticket
from ticketdesk.utils.types import SortKey, TicketFrame

logger = logging.getLogger(__name__)

SEARCH_COLUMNS = ["id", "subject", "body", "sender", "display_category", "sport"]

_FRAME_COLUMNS = [
    "row", "id", "subject", "body", "sender", "sport", "date",
    "categories", "display_category", "routing", "status", "confidence",
]


def tickets_frame(tickets: Sequence[Ticket]) -> TicketFrame:
    """Project tickets into a DataFrame; ``row`` indexes back into ``tickets``."""
    records = [
        {
            "row": pos,
            "id": str(t.id),
            "subject": t.subject,
            "body": t.body,
            "sender": t.sender,
            "sport": t.sport,
            "date": t.date,
            "categories": list(t.categories),
            "display_category": t.display_category,
            "routing": str(t.routing),
            "status": str(t.status),
            "confidence": float(t.confidence),
        }
        for pos, t in enumerate(tickets)
    ]
    return pd.DataFrame.from_records(records, columns=_FRAME_COLUMNS)


def _from_frame(frame: TicketFrame, tickets: Sequence[Ticket]) -> list[Ticket]:
    return [tickets[int(pos)] for pos in frame["row"]]


def _search_mask(frame: TicketFrame, query: str) -> pd.Series:
    q = str(query or "").strip().lower()
    if not q:
        return pd.Series(True, index=frame.index)

    mask = pd.Series(False, index=frame.index)
    for col in SEARCH_COLUMNS:
        mask |= frame[col].astype(str).str.lower().str.contains(q, regex=False)
    return mask


def _month_mask(frame: TicketFrame, month: str) -> pd.Series:
    if month == ALL:
        return pd.Series(True, index=frame.index)
    return frame["date"].astype(str).str[:7] == month


def _category_mask(frame: TicketFrame, selected: set[str]) -> pd.Series:
    # Tickets without categories never match; see DESIGN.md
    return frame["categories"].map(lambda cats: any(str(c) in selected for c in cats)).astype(bool)


def _exact_mask(frame: TicketFrame, column: str, value: str) -> pd.Series:
    if value == ALL:
        return pd.Series(True, index=frame.index)
    return frame[column] == str(value)


def filter_tickets(tickets: Sequence[Ticket], config: FilterConfiguration) -> list[Ticket]:
    """Apply search, month, category, routing and status predicates in that order."""
    frame = tickets_frame(tickets)
    if frame.empty:
        return []

    frame = frame[_search_mask(frame, config.query)]
    frame = frame[_month_mask(frame, config.month)]
    frame = frame[_category_mask(frame, config.categories)]
    frame = frame[_exact_mask(frame, "routing", config.routing)]
    frame = frame[_exact_mask(frame, "status", config.status)]

    logger.debug("Filter kept %d of %d tickets", len(frame), len(tickets))
    return _from_frame(frame, tickets)


def sort_tickets(tickets: Sequence[Ticket], key: SortKey | str) -> list[Ticket]:
    """Stable sort. Dates compare as raw strings, ids numerically."""
    frame = tickets_frame(tickets)
    if frame.empty:
        return []

    match key:
        case SortKey.DATE_ASC | SortKey.DATE_DESC:
            frame["sort_value"] = frame["date"].astype(str)
        case SortKey.ID_ASC | SortKey.ID_DESC:
            frame["sort_value"] = pd.to_numeric(frame["id"], errors="coerce")
        case other:
            logger.warning("Unknown sort key %r, keeping current order", other)
            return list(tickets)

    ascending = key in (SortKey.DATE_ASC, SortKey.ID_ASC)
    frame = frame.sort_values("sort_value", ascending=ascending, kind="stable", na_position="last")
    return _from_frame(frame, tickets)


def visible_tickets(tickets: Sequence[Ticket], config: FilterConfiguration) -> list[Ticket]:
    return sort_tickets(filter_tickets(tickets, config), config.sort_key)


def axis_order_for(active: str, sport_order: Sequence[str]) -> list[str]:
    """Put the active sport first; an unknown active sport keeps the configured order."""
    if active not in sport_order:
        return list(sport_order)
    return [active, *(s for s in sport_order if s != active)]


def group_tickets(tickets: Sequence[Ticket], axis_order: Sequence[str]) -> dict[str, list[Ticket]]:
    """Bucket by sport: every configured sport in order, then ad-hoc buckets."""
    groups: dict[str, list[Ticket]] = {sport: [] for sport in axis_order}
    for ticket in tickets:
        groups.setdefault(ticket.sport, []).append(ticket)
    return groups


def month_options(tickets: Sequence[Ticket]) -> list[str]:
    frame = tickets_frame(tickets)
    if frame.empty:
        return []
    months = frame["date"].astype(str).str[:7]
    return sorted(m for m in months.unique() if m)
