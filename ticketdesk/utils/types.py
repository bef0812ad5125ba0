"""Shared type definitions for the triage engine."""

from enum import StrEnum
from typing import NewType

import pandas as pd

TicketId = NewType("TicketId", str)

type Histogram = dict[str, int]
type SeriesPoint = tuple[str, int]
type ValidationOutcome = dict[str, bool | str | list[str]]
type TicketFrame = pd.DataFrame


def ticket_id(value: object) -> TicketId:
    """Coerce any raw identifier to the string-comparable ticket id."""
    return TicketId(str(value))


class Routing(StrEnum):
    STAFF = "Staff"
    HANDLER = "Peter"


class Direction(StrEnum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


class SortKey(StrEnum):
    DATE_ASC = "date_asc"
    DATE_DESC = "date_desc"
    ID_ASC = "id_asc"
    ID_DESC = "id_desc"


class MutationOutcome(StrEnum):
    CHANGED = "changed"
    UNCHANGED = "unchanged"
    NOT_FOUND = "not_found"
    REJECTED = "rejected"
