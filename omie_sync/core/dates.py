"""Date helpers for the Omie boundary (``DD/MM/YYYY``)."""
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any

import pandas as pd

OMIE_DATE_FORMAT = "%d/%m/%Y"


def coerce_date(value: Any) -> date | None:
    """Best-effort conversion of a database or spreadsheet cell to a date."""

    if value is None:
        return None
    if isinstance(value, datetime):
        if pd.isna(value):
            return None
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        parsed = pd.to_datetime(raw, errors="coerce")
        if pd.isna(parsed):
            return None
        return parsed.date()
    return None


def format_date(value: date) -> str:
    return value.strftime(OMIE_DATE_FORMAT)


def shift_date(base: date | None, days: int, *, today: date) -> date:
    """``base + days``; a missing base date counts from ``today``."""

    return (base or today) + timedelta(days=days)
