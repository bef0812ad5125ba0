# tests/test_session.py

import json

import pytest

from ticketdesk.support.session import TriageSession
from ticketdesk.utils.io import FileStore
from ticketdesk.utils.types import Direction, MutationOutcome, Routing, SortKey


def _stored(store, config):
    raw = store.get(config.storage_key)
    return None if raw is None else json.loads(raw)


@pytest.fixture
def two_tickets(make_raw):
    return [
        make_raw(id="1", assignee="Peter", confidence=0.9),
        make_raw(id="2", assignee="Peter", confidence=0.3, date="2026-02-01"),
    ]


def test_end_to_end_status_change(open_session, two_tickets, store, config):
    session = open_session(two_tickets)
    assert session.get_ticket("1").routing is Routing.HANDLER
    assert session.get_ticket("2").routing is Routing.STAFF

    before = session.dashboard()
    assert (before.open, before.solved) == (2, 0)

    result = session.change_status("2", "closed")
    assert result.changed

    stored = _stored(store, config)
    assert list(stored) == ["2"]
    assert stored["2"]["status"] == "closed"
    assert stored["2"]["note"] == "2026-03-20 14:05 • Status changed to closed"

    after = session.dashboard()
    assert (after.open, after.solved) == (1, 1)


def test_reload_restores_overrides(open_session, two_tickets):
    first = open_session(two_tickets)
    first.change_status("2", "closed")

    reloaded = open_session(two_tickets)
    ticket = reloaded.get_ticket("2")
    assert ticket.status == "closed"
    assert "Status changed to closed" in ticket.note
    assert reloaded.baseline.get(ticket.id).status == "open"


def test_notes_accumulate_on_new_lines(open_session, two_tickets):
    session = open_session(two_tickets)
    session.change_status("1", "pending")
    session.change_status("1", "closed")
    assert session.get_ticket("1").note == (
        "2026-03-20 14:05 • Status changed to pending\n"
        "2026-03-20 14:05 • Status changed to closed"
    )


def test_no_op_change_has_no_side_effects(open_session, two_tickets, store, config):
    session = open_session(two_tickets)

    assert session.change_status("1", "open").outcome is MutationOutcome.UNCHANGED
    assert session.change_routing("1", "Peter").outcome is MutationOutcome.UNCHANGED
    assert session.change_categories("1", ["Size"]).message == "No change."

    assert session.get_ticket("1").note == ""
    assert session.threads.get(session.get_ticket("1").id) == []
    assert _stored(store, config) is None


def test_missing_ticket_is_a_silent_no_op(open_session, two_tickets, store, config):
    session = open_session(two_tickets)
    for result in (
        session.change_status("404", "closed"),
        session.change_routing("404", Routing.STAFF),
        session.change_categories("404", ["Size"]),
        session.send_reply("404", "hello"),
        session.escalate("404"),
    ):
        assert result.outcome is MutationOutcome.NOT_FOUND
    assert session.conversation("404") == []
    assert _stored(store, config) is None


def test_unknown_routing_value_is_rejected(open_session, two_tickets):
    session = open_session(two_tickets)
    with pytest.raises(ValueError):
        session.change_routing("1", "Somebody")


def test_escalation_bypasses_threshold_until_reload(open_session, two_tickets):
    session = open_session(two_tickets)
    result = session.escalate("2")

    assert result.changed
    assert session.get_ticket("2").routing is Routing.HANDLER
    assert session.get_ticket("2").note.endswith("Routing changed to Peter")

    # Stored routing is re-classified on load, so the low-confidence ticket returns to staff
    reloaded = open_session(two_tickets)
    assert reloaded.get_ticket("2").routing is Routing.STAFF
    assert reloaded.get_ticket("2").note.endswith("Routing changed to Peter")


def test_routing_change_survives_reload_when_confident(open_session, two_tickets):
    session = open_session(two_tickets)
    session.change_routing("1", Routing.STAFF)

    reloaded = open_session(two_tickets)
    assert reloaded.get_ticket("1").routing is Routing.STAFF


def test_reply_appends_outbound_message(open_session, two_tickets, store, config):
    session = open_session(two_tickets)

    rejected = session.send_reply("1", "   ")
    assert rejected.outcome is MutationOutcome.REJECTED
    assert _stored(store, config) is None

    assert session.send_reply("1", " We have it in stock. ").changed
    conversation = session.conversation("1")
    assert [m.direction for m in conversation] == [Direction.INBOUND, Direction.OUTBOUND]
    assert conversation[0].body == session.get_ticket("1").body
    assert conversation[1].body == "We have it in stock."
    assert conversation[1].sender == "UK Sports (Admin)"
    assert conversation[1].date == "2026-03-20 14:05"

    thread = _stored(store, config)["1"]["thread"]
    assert thread == [
        {"from": "UK Sports (Admin)", "date": "2026-03-20 14:05", "body": "We have it in stock.", "direction": "outbound"}
    ]

    reloaded = open_session(two_tickets)
    assert [m.body for m in reloaded.conversation("1")][1:] == ["We have it in stock."]


def test_category_change(open_session, two_tickets):
    session = open_session(two_tickets)

    assert session.change_categories("1", ["Delivery", "Complaint", "Delivery"]).changed
    ticket = session.get_ticket("1")
    assert ticket.categories == ["Delivery", "Complaint"]
    assert ticket.note.endswith("Categories changed to Delivery + Complaint")

    assert session.change_categories("1", []).changed
    assert ticket.categories == ["Other"]


def test_revert_keeps_override_while_note_exists(open_session, two_tickets, store, config):
    session = open_session(two_tickets)
    session.change_status("1", "closed")
    session.change_status("1", "open")
    assert "1" in _stored(store, config)


def test_load_shape_error_leaves_empty_working_set(config, store):
    session = TriageSession(config, store)
    assert session.load({"items": []}) == []
    assert session.tickets == []
    assert "array of tickets" in session.load_error
    assert session.dashboard().total == 0


def test_wrapped_payload_is_accepted(open_session, two_tickets):
    session = open_session({"tickets": two_tickets})
    assert [t.id for t in session.tickets] == ["1", "2"]
    assert session.load_error is None


def test_from_file_reports_missing_and_broken_files(tmp_path, config, store):
    missing = TriageSession.from_file(tmp_path / "nope.json", config, store)
    assert missing.tickets == []
    assert missing.load_error

    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    assert TriageSession.from_file(broken, config, store).load_error


def test_from_file_loads_tickets(tmp_path, config, store, two_tickets):
    feed = tmp_path / "tickets.json"
    feed.write_text(json.dumps(two_tickets), encoding="utf-8")
    session = TriageSession.from_file(feed, config, store)
    assert len(session.tickets) == 2


def test_new_categories_from_data_are_selected_by_default(open_session, make_raw):
    session = open_session([make_raw(id="1", type="Gift card"), make_raw(id="2", type="")])
    assert session.category_options()[-1] == "Gift card"
    assert "Gift card" in session.filters.categories
    assert [t.id for t in session.visible_tickets()] == ["1"]


def test_filters_do_not_change_dashboard(open_session, two_tickets):
    session = open_session(two_tickets)
    session.apply_filter(query="no such text")
    assert session.visible_tickets() == []
    assert session.dashboard().total == 2


def test_filter_intents(open_session, make_raw):
    session = open_session([
        make_raw(id="1", sport="Hockey", date="2026-01-01"),
        make_raw(id="2", sport="Cricket", date="2026-02-01"),
        make_raw(id="3", sport="Hockey", date="2026-03-01"),
    ])

    session.change_sort("id_asc")
    assert session.filters.sort_key is SortKey.ID_ASC

    session.set_active_sport("Cricket")
    session.set_active_sport("Tennis")
    grouped = session.grouped_view()
    assert list(grouped) == ["Cricket", "Rugby", "Hockey"]
    assert [t.id for t in grouped["Hockey"]] == ["1", "3"]

    session.apply_filter(month="2026-02")
    assert [t.id for t in session.visible_tickets()] == ["2"]

    session.reset_filters()
    assert session.filters.month == "all"
    assert session.filters.sort_key is SortKey.DATE_DESC
    assert [t.id for t in session.visible_tickets()] == ["3", "2", "1"]

    with pytest.raises(ValueError):
        session.apply_filter(colour="red")


def test_options(open_session, two_tickets):
    session = open_session(two_tickets)
    assert session.routing_options() == [Routing.STAFF, Routing.HANDLER]
    assert session.month_options() == ["2026-01", "2026-02"]
    assert session.monthly_series() == [("2026-01", 1), ("2026-02", 1), ("2026-03", 0)]


def test_undecodable_override_file_reads_as_empty(tmp_path, config, two_tickets):
    state = tmp_path / "state"
    state.mkdir()
    (state / f"{config.storage_key}.json").write_bytes(b"\xff\xfe{garbage")
    feed = tmp_path / "tickets.json"
    feed.write_text(json.dumps(two_tickets), encoding="utf-8")

    session = TriageSession.from_file(feed, config, FileStore(state))
    assert session.load_error is None
    assert [t.id for t in session.tickets] == ["1", "2"]
    assert session.overrides.overrides == {}


def test_undecodable_feed_file_is_a_load_error(tmp_path, config, store):
    feed = tmp_path / "tickets.json"
    feed.write_bytes(b"[\xff]")

    session = TriageSession.from_file(feed, config, store)
    assert session.tickets == []
    assert session.load_error.startswith("Could not load tickets JSON.")


def test_unknown_status_is_rejected(open_session, two_tickets, store, config):
    session = open_session(two_tickets)
    with pytest.raises(ValueError):
        session.change_status("1", "banana")
    assert session.get_ticket("1").status == "open"
    assert session.get_ticket("1").note == ""
    assert _stored(store, config) is None

    assert session.change_status("1", "pending").changed
