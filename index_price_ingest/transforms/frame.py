"""
Flatten an ``AggregateOutput`` into a single tidy DataFrame.

One row per (symbol, time point). Key columns come first, followed by
the union of all feed columns in first-seen order. Feeds that lack a
column simply get missing values for it.
"""

from __future__ import annotations

import pandas as pd

from index_price_ingest.models import UNIX_TIME_KEY, AggregateOutput

KEY_COLUMNS = ["symbol", "name", UNIX_TIME_KEY]


def aggregate_to_frame(output: AggregateOutput) -> pd.DataFrame:
    """Build a long-form DataFrame from the driver's output.

    Args:
        output: Mapping of symbol -> ``{"ticker": [...], "name": ...}``.

    Returns:
        DataFrame with columns ``symbol, name, unix_time`` plus one column
        per feed field. Values are left as the raw feed strings.
    """
    records: list[dict] = []
    value_columns: dict[str, None] = {}

    for symbol, entry in output.items():
        for point in entry["ticker"]:
            for key in point:
                if key != UNIX_TIME_KEY:
                    value_columns.setdefault(key, None)
            records.append({"symbol": symbol, "name": entry["name"], **point})

    columns = KEY_COLUMNS + list(value_columns)
    df = pd.DataFrame.from_records(records, columns=columns)
    if not df.empty:
        df[UNIX_TIME_KEY] = df[UNIX_TIME_KEY].astype("int64")
    return df
