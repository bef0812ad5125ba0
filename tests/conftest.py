# tests/conftest.py

from datetime import datetime

import pytest

from ticketdesk.config import load_triage_config
from ticketdesk.support.session import TriageSession
from ticketdesk.support.transform import normalize_ticket
from ticketdesk.utils.io import MemoryStore


@pytest.fixture
def config():
    return load_triage_config("production")


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def clock():
    return lambda: datetime(2026, 3, 20, 14, 5)


@pytest.fixture
def make_raw():
    def _make(**fields):
        raw = {
            "id": "1",
            "subject": "Scrum cap size",
            "body": "Which size fits a 54 cm head?",
            "sender": "anna@example.com",
            "sport": "Rugby",
            "date": "2026-01-10",
            "type": "Size",
            "assignee": "Staff",
            "status": "open",
            "confidence": 0.9,
        }
        raw.update(fields)
        return raw

    return _make


@pytest.fixture
def make_ticket(make_raw, config):
    def _make(**fields):
        return normalize_ticket(make_raw(**fields), config)

    return _make


@pytest.fixture
def open_session(config, store, clock):
    """Open a fresh session on the shared store, as a page reload would."""

    def _open(payload):
        session = TriageSession(config, store, clock=clock)
        session.load(payload)
        return session

    return _open
