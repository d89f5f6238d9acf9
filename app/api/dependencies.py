"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from fastapi import HTTPException, Query, status


@dataclass(frozen=True)
class DateWindow:
    date_from: date | None = None
    date_to: date | None = None


def get_date_window(
    date_from: date | None = Query(default=None, description="Inclusive start date (YYYY-MM-DD)"),
    date_to: date | None = Query(default=None, description="Inclusive end date (YYYY-MM-DD)"),
) -> DateWindow:
    """
    Validate an optional inclusive date filter.
    """

    if date_from is not None and date_to is not None and date_from > date_to:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="date_from must be on or before date_to.",
        )
    return DateWindow(date_from=date_from, date_to=date_to)
