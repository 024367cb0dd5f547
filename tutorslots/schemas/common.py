# tutorslots/schemas/common.py

import re
from datetime import date, datetime

from pydantic import BaseModel

_TIME_RE = re.compile(r"^\d{2}:\d{2}$")


def parse_request_date(value):
    """Accept date objects, "YYYY-MM-DD" and "DD-MM-YYYY"."""
    if value is None or isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        for fmt in ("%Y-%m-%d", "%d-%m-%Y"):
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
    raise ValueError("Date must be in YYYY-MM-DD or DD-MM-YYYY format")


def check_time_str(value: str) -> str:
    if not _TIME_RE.match(value or ""):
        raise ValueError("Time must be in HH:MM format")
    return value


class PaginationRead(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def from_page(cls, page) -> "PaginationRead":
        return cls(
            total=page.total,
            page=page.page,
            limit=page.limit,
            total_pages=page.total_pages,
        )
