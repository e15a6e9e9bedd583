from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pandas as pd

from .constants import (
    COLUMN_ALIASES,
    DEATHS_COLUMN,
    PREDICTORS,
    REQUIRED_COLUMNS,
    TARGET_COLUMN,
)

logger = logging.getLogger(__name__)


@dataclass
class EarthquakeDataset:
    frame: pd.DataFrame
    column_mapping: Dict[str, str]
    rows_read: int
    deaths_imputed: int
    rows_dropped: int
    dropped_by_column: Dict[str, int] = field(default_factory=dict)

    @property
    def n_records(self) -> int:
        return len(self.frame)

    @property
    def fatality_rate(self) -> float:
        return float(self.frame[TARGET_COLUMN].mean())


def normalize_column_name(name) -> str:
    """Lowercase and strip everything but letters and digits."""
    return re.sub(r"[^0-9a-z]", "", str(name).lower())


def resolve_columns(df: pd.DataFrame, overrides: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Map each canonical column to a source column of ``df``.

    Explicit overrides win; otherwise the first alias present (after name
    normalization) is used. Raises KeyError when a column cannot be found.
    """
    overrides = dict(overrides or {})
    unknown = set(overrides) - set(REQUIRED_COLUMNS)
    if unknown:
        raise KeyError(f"Unknown canonical column(s) in overrides: {sorted(unknown)}")

    normalized = {}
    for col in df.columns:
        normalized.setdefault(normalize_column_name(col), col)

    mapping: Dict[str, str] = {}
    for canonical in REQUIRED_COLUMNS:
        if canonical in overrides:
            source = overrides[canonical]
            if source not in df.columns:
                raise KeyError(
                    f"Column '{source}' given for '{canonical}' not found; columns present: {list(df.columns)}"
                )
            mapping[canonical] = source
            continue

        candidates: List[str] = [canonical] + COLUMN_ALIASES.get(canonical, [])
        for candidate in candidates:
            source = normalized.get(normalize_column_name(candidate))
            if source is not None:
                mapping[canonical] = source
                break
        else:
            raise KeyError(
                f"No column found for '{canonical}' (tried {candidates}); columns present: {list(df.columns)}"
            )

    return mapping


def load_earthquakes(path) -> pd.DataFrame:
    """Read the raw earthquake CSV. Read errors propagate."""
    df = pd.read_csv(path, low_memory=False)
    logger.info("Read %d rows and %d columns from %s", len(df), df.shape[1], path)
    return df


def select_columns(df: pd.DataFrame, mapping: Dict[str, str]) -> pd.DataFrame:
    """Keep only the mapped columns, renamed to canonical names and coerced to numbers."""
    selected = df[[mapping[c] for c in REQUIRED_COLUMNS]].copy()
    selected.columns = REQUIRED_COLUMNS
    for col in REQUIRED_COLUMNS:
        # Non-numeric text (e.g. "unknown") becomes missing
        selected[col] = pd.to_numeric(selected[col], errors="coerce")
    return selected.reset_index(drop=True)


def dropna_by_columns(df: pd.DataFrame, columns: List[str]) -> pd.DataFrame:
    """Drop rows with NA in the specified columns only."""
    return df.dropna(subset=columns)


def clean_earthquakes(df: pd.DataFrame) -> pd.DataFrame:
    """Impute missing deaths as zero, drop incomplete records and derive the fatality flag."""
    cleaned = df.copy()
    cleaned[DEATHS_COLUMN] = cleaned[DEATHS_COLUMN].fillna(0.0)
    cleaned = dropna_by_columns(cleaned, PREDICTORS).reset_index(drop=True)
    if cleaned.empty:
        raise ValueError("No complete earthquake records remain after dropping missing values")
    cleaned[TARGET_COLUMN] = (cleaned[DEATHS_COLUMN] >= 1).astype(int)
    return cleaned


def prepare_dataset(path, overrides: Optional[Dict[str, str]] = None) -> EarthquakeDataset:
    """Load, select and clean the dataset, keeping the bookkeeping needed by the report."""
    raw = load_earthquakes(path)
    mapping = resolve_columns(raw, overrides)
    logger.debug("Column mapping: %s", mapping)

    selected = select_columns(raw, mapping)
    deaths_imputed = int(selected[DEATHS_COLUMN].isna().sum())
    dropped_by_column = {c: int(selected[c].isna().sum()) for c in PREDICTORS}

    cleaned = clean_earthquakes(selected)
    rows_dropped = len(selected) - len(cleaned)
    logger.info(
        "Kept %d of %d records (%d deaths imputed as 0, %d dropped for missing predictors)",
        len(cleaned), len(selected), deaths_imputed, rows_dropped,
    )

    return EarthquakeDataset(
        frame=cleaned,
        column_mapping=mapping,
        rows_read=len(selected),
        deaths_imputed=deaths_imputed,
        rows_dropped=rows_dropped,
        dropped_by_column=dropped_by_column,
    )
