"""Triage engine configuration and environment setup."""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

type ConfigDict = dict[str, str | int | bool | list[str]]
type FieldDefault = str | float

# Fallback for every raw ticket field the normalizer reads.
FIELD_DEFAULTS: dict[str, FieldDefault] = {
    "id": "",
    "subject": "",
    "body": "",
    "sender": "",
    "sport": "",
    "date": "",
    "status": "open",
    "assignee": "",
    "confidence": 0.0,
    "note": "",
    "type": "",
}

ALL = "all"


@dataclass(frozen=True)
class TriageConfig:
    handler_confidence_threshold: float
    closed_status: str
    statuses: tuple[str, ...]
    sport_order: tuple[str, ...]
    category_options: tuple[str, ...]
    fallback_category: str
    storage_key: str
    reply_sender: str
    monthly_series: tuple[str, ...] = ()
    data_file: Path = Path("data/tickets_demo.json")
    storage_dir: Path = Path(".ticketdesk")
    defaults: dict[str, FieldDefault] = field(default_factory=lambda: dict(FIELD_DEFAULTS))


def load_triage_config(env: str = "production") -> TriageConfig:
    match env:
        case "production":
            storage_key = "ticketdesk_overrides_v1"
            monthly_series = ("2026-01", "2026-02", "2026-03")
        case "staging":
            storage_key = "ticketdesk_overrides_staging_v1"
            monthly_series = ("2026-01", "2026-02", "2026-03")
        case "development":
            storage_key = "ticketdesk_overrides_dev_v1"
            monthly_series = ()
        case other:
            raise ValueError(f"Unknown environment: {other}")

    settings = get_env_config()
    return TriageConfig(
        handler_confidence_threshold=0.8,
        closed_status="closed",
        statuses=("open", "pending", "closed"),
        sport_order=("Rugby", "Hockey", "Cricket"),
        category_options=(
            "Size", "Delivery", "Recommendation",
            "Complaint", "Club purchase", "Other",
        ),
        fallback_category="Other",
        storage_key=storage_key,
        reply_sender="UK Sports (Admin)",
        monthly_series=monthly_series,
        data_file=Path(str(settings.get("data_file", "data/tickets_demo.json"))),
        storage_dir=Path(str(settings.get("storage_dir", ".ticketdesk"))),
    )


def get_env_config() -> ConfigDict:
    """Read triage settings from pyproject.toml."""
    pyproject = Path(__file__).parent.parent / "pyproject.toml"
    if not pyproject.exists():
        return {}
    with open(pyproject, "rb") as f:
        data = tomllib.load(f)
    return data.get("tool", {}).get("ticketdesk", {})
