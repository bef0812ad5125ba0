"""Ticket frame validation using pandera."""

import pandera as pa
import pandas as pd
from pandera import DataFrameSchema

from ticketdesk.utils.types import ValidationOutcome

KEY_COLUMN = "id"


def _row_label(df: pd.DataFrame, index: object) -> str:
    """Name a failing row by its ticket id; schema-wide failures have no row."""
    if KEY_COLUMN not in df.columns or index is None or pd.isna(index) or index not in df.index:
        return "feed"
    return f"ticket {df.at[index, KEY_COLUMN]}"


def validate_dataframe(df: pd.DataFrame, schema: DataFrameSchema) -> ValidationOutcome:
    """Validate a ticket frame, reporting one error line per failing ticket and check."""
    try:
        schema.validate(df, lazy=True)
        return {"valid": True, "status": "ok", "errors": []}
    except pa.errors.SchemaErrors as e:
        errors = []
        for _, row in e.failure_cases.iterrows():
            match row.to_dict():
                case {"column": col, "check": check, "failure_case": val, "index": idx}:
                    errors.append(f"{_row_label(df, idx)}: '{col}' failed {check} (got {val!r})")
                case failure:
                    errors.append(f"Validation failure: {failure}")
        return {"valid": False, "status": "error", "errors": errors}


def validate_unique(df: pd.DataFrame, columns: list[str]) -> ValidationOutcome:
    """Check that ``columns`` identify each ticket, listing the keys that repeat."""
    duplicates = df.duplicated(subset=columns, keep=False)

    match int(duplicates.sum()):
        case 0:
            return {"valid": True, "status": "ok", "errors": []}
        case n:
            keys = df.loc[duplicates, columns].astype(str).agg("/".join, axis=1).unique()
            return {
                "valid": False,
                "status": "error",
                "errors": [f"Found {n} tickets sharing a duplicate {'/'.join(columns)}: {', '.join(keys)}"],
            }
