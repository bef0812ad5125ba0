"""Shared utilities for the triage engine."""

from ticketdesk.utils.io import FileStore, KeyValueStore, MemoryStore, read_json_file
from ticketdesk.utils.validators import validate_dataframe, validate_unique
from ticketdesk.utils.types import Direction, MutationOutcome, Routing, SortKey, TicketId
