"""Dashboard aggregates over the full, unfiltered ticket collection."""

import logging
import math
from collections.abc import Sequence

from ticketdesk.config import TriageConfig
from ticketdesk.support.models import DashboardSummary, Ticket, TicketFrameSchema
from ticketdesk.support.query import tickets_frame
from ticketdesk.utils.types import Histogram, SeriesPoint

logger = logging.getLogger(__name__)


def percent(part: int, whole: int) -> int:
    """Whole-number percentage, rounding halves up; 0 when ``whole`` is 0."""
    if not whole:
        return 0
    return math.floor(part / whole * 100 + 0.5)


def _histogram(values) -> Histogram:
    counts = values.value_counts(sort=False)
    return {str(k): int(v) for k, v in counts.items()}


def compute_dashboard(tickets: Sequence[Ticket], config: TriageConfig) -> DashboardSummary:
    """Summarize totals and histograms. Never depends on the active filters."""
    frame = tickets_frame(tickets)
    if frame.empty:
        return DashboardSummary(0, 0, 0, 0, 0, {}, {})

    frame = TicketFrameSchema.validate(frame)

    total = len(frame)
    solved = int((frame["status"] == config.closed_status).sum())
    open_count = total - solved

    summary = DashboardSummary(
        total=total,
        solved=solved,
        open=open_count,
        solved_pct=percent(solved, total),
        open_pct=percent(open_count, total),
        by_category=_histogram(frame["display_category"]),
        by_routing=_histogram(frame["routing"]),
    )
    logger.info(
        "Dashboard: %d tickets, %d solved (%d%%), %d open",
        summary.total, summary.solved, summary.solved_pct, summary.open,
    )
    return summary


def monthly_series(tickets: Sequence[Ticket], months: Sequence[str] | None = None) -> list[SeriesPoint]:
    """Ticket counts per ``YYYY-MM``; zero-filled when ``months`` is given."""
    frame = tickets_frame(tickets)
    counts: dict[str, int] = {}
    if not frame.empty:
        per_month = frame.groupby(frame["date"].astype(str).str[:7]).size()
        counts = {str(k): int(v) for k, v in per_month.items()}

    if months:
        return [(m, counts.get(m, 0)) for m in months]
    return [(m, counts[m]) for m in sorted(counts) if m]
