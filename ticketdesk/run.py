"""Terminal front end: loads the feed, applies one intent and renders the board."""

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ticketdesk import support
from ticketdesk.config import ALL, load_triage_config
from ticketdesk.support.models import MutationResult, Ticket
from ticketdesk.support.session import TriageSession
from ticketdesk.utils.types import MutationOutcome, Routing, SortKey

console = Console()

EXCERPT_LENGTH = 140


def _excerpt(body: str) -> str:
    return body if len(body) <= EXCERPT_LENGTH else body[:EXCERPT_LENGTH] + "…"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Support ticket triage board")
    parser.add_argument("--data", type=Path, help="Ticket feed JSON (defaults to config)")
    parser.add_argument("--env", default="production", help="Configuration environment")
    parser.add_argument("--validate", action="store_true", help="Only validate the feed")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    filters = parser.add_argument_group("filters")
    filters.add_argument("--query", default="", help="Free-text search")
    filters.add_argument("--month", default=ALL, help="YYYY-MM or 'all'")
    filters.add_argument("--category", action="append", help="Selected category (repeatable)")
    filters.add_argument("--routing", default=ALL, help="Routing filter or 'all'")
    filters.add_argument("--status", default=ALL, help="Status filter or 'all'")
    filters.add_argument("--sort", default=SortKey.DATE_DESC, choices=[str(k) for k in SortKey])
    filters.add_argument("--sport", help="Sport section to show first")

    mutate = parser.add_argument_group("ticket changes")
    mutate.add_argument("--ticket", help="Ticket id to change or inspect")
    action = mutate.add_mutually_exclusive_group()
    action.add_argument("--set-status", help="New status (one of the configured statuses)")
    action.add_argument("--set-routing", choices=[str(r) for r in Routing])
    action.add_argument("--set-categories", help="Comma separated categories")
    action.add_argument("--reply", help="Send an outbound reply")
    action.add_argument("--escalate", action="store_true", help="Escalate to the senior handler")
    return parser


def apply_change(session: TriageSession, args: argparse.Namespace) -> MutationResult | None:
    match args:
        case argparse.Namespace(ticket=None):
            return None
        case argparse.Namespace(set_status=str(status)):
            return session.change_status(args.ticket, status)
        case argparse.Namespace(set_routing=str(routing)):
            return session.change_routing(args.ticket, routing)
        case argparse.Namespace(set_categories=str(raw)):
            return session.change_categories(args.ticket, raw.split(","))
        case argparse.Namespace(reply=str(text)):
            return session.send_reply(args.ticket, text)
        case argparse.Namespace(escalate=True):
            return session.escalate(args.ticket)
        case _:
            return None


def render_dashboard(session: TriageSession) -> None:
    summary = session.dashboard()
    console.print(
        f"[bold]Solved[/bold] {summary.solved_pct}%   "
        f"[bold]Open[/bold] {summary.open_pct}%   "
        f"[bold]Total[/bold] {summary.total}"
    )

    table = Table(title="Distribution")
    table.add_column("Dimension", style="cyan")
    table.add_column("Segment")
    table.add_column("Tickets", justify="right")
    for label, count in summary.by_category.items():
        table.add_row("category", label or "–", str(count))
    for label, count in summary.by_routing.items():
        table.add_row("routing", label, str(count))
    for month, count in session.monthly_series():
        table.add_row("month", month, str(count))
    console.print(table)


def render_section(sport: str, tickets: list[Ticket]) -> None:
    table = Table(title=f"{sport} ({len(tickets)} tickets)")
    table.add_column("#", justify="right")
    table.add_column("Subject", style="bold")
    table.add_column("Excerpt")
    table.add_column("Type")
    table.add_column("Routing")
    table.add_column("Status")
    table.add_column("Date")
    table.add_column("Confidence", justify="right")

    for t in tickets:
        table.add_row(
            t.id, t.subject, _excerpt(t.body), t.display_category,
            str(t.routing), t.status, t.date, f"{round(t.confidence * 100)}/100",
        )
    if not tickets:
        table.add_row("", f"No tickets in {sport}", "", "", "", "", "", "")
    console.print(table)


def render_thread(session: TriageSession, ticket_id: str) -> None:
    ticket = session.get_ticket(ticket_id)
    if ticket is None:
        return
    console.print(f"\n[bold]#{ticket.id} - {ticket.subject}[/bold]")
    for message in session.conversation(ticket.id):
        arrow = "→" if message.direction == "outbound" else "←"
        console.print(f"  {arrow} [cyan]{message.sender}[/cyan] {message.date}: {message.body}")
    if ticket.note:
        console.print(f"  [dim]{ticket.note}[/dim]")


def main():
    parser = build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    config = load_triage_config(args.env)
    if args.set_status is not None and args.set_status not in config.statuses:
        parser.error(f"--set-status must be one of: {', '.join(config.statuses)}")

    if args.validate:
        match support.validate(args.data, config):
            case {"status": "ok", "row_count": n}:
                console.print(f"[green]✓[/green] {n} tickets valid")
            case {"status": "error", "message": msg}:
                console.print(f"[red]✗ {msg}[/red]")
                sys.exit(1)
        return

    session = support.run(args.data, config)
    if session.load_error:
        console.print(f"[red]{session.load_error}[/red]")
        sys.exit(1)

    result = apply_change(session, args)
    match result:
        case MutationResult(outcome=MutationOutcome.CHANGED, message=msg):
            console.print(f"[green]{msg}[/green]")
        case MutationResult(outcome=MutationOutcome.NOT_FOUND):
            pass
        case MutationResult(message=msg):
            console.print(f"[yellow]{msg}[/yellow]")

    session.apply_filter(
        query=args.query,
        month=args.month,
        routing=args.routing,
        status=args.status,
        sort_key=args.sort,
    )
    if args.category:
        session.apply_filter(categories=args.category)
    if args.sport:
        session.set_active_sport(args.sport)

    render_dashboard(session)
    visible = session.visible_tickets()
    console.print(f"\n{len(visible)} results")
    for sport, tickets in session.grouped_view().items():
        render_section(sport, tickets)

    if args.ticket:
        render_thread(session, args.ticket)


if __name__ == "__main__":
    main()
