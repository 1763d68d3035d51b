"""
Number parsing transform for index-price-ingest.

Feed values arrive as raw strings (``"100.5"``, ``"5000"``, sometimes
with stray whitespace or an empty cell). This transform:
1. Strips whitespace from all value cells.
2. Coerces columns to numeric dtype (pd.to_numeric with errors='coerce').
3. Leaves key columns (symbol, name, unix_time) untouched.
"""

from __future__ import annotations

import pandas as pd


def parse_numbers(df: pd.DataFrame, key_columns: list[str]) -> pd.DataFrame:
    """Parse numeric strings in every non-key column.

    Empty strings and non-numeric values become ``NaN``.

    Args:
        df: Input DataFrame with string values from the feed.
        key_columns: Column names to skip.

    Returns:
        A copy of *df* with value columns coerced to numeric dtypes.
    """
    df = df.copy()
    key_set = set(key_columns)
    value_cols = [c for c in df.columns if c not in key_set]

    for col in value_cols:
        cleaned = df[col].astype("string").str.strip()
        df[col] = pd.to_numeric(cleaned, errors="coerce")

    return df
