"""Helpers for turning caller data into plain marker records."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

import pandas as pd


def coerce_records(records: Iterable, *, key_field: str = "key") -> List[Dict[str, Any]]:
    """Return ``records`` as a list of plain dicts.

    Accepts either a dataframe or any iterable of mapping-like objects
    (including pydantic models). Missing ``position`` / ``key_field`` values
    (absent columns, ``None`` or ``NaN``) are normalised to ``None`` so the
    marker builder can apply its defaults deterministically.
    """

    if isinstance(records, pd.DataFrame):
        rows = records.to_dict(orient="records")
    else:
        rows = []
        for record in records:
            if hasattr(record, "model_dump"):
                rows.append(record.model_dump())
            else:
                rows.append(dict(record))

    for row in rows:
        for column in ("position", key_field):
            value = row.get(column)
            if value is None or (isinstance(value, float) and pd.isna(value)):
                row[column] = None

    return rows
