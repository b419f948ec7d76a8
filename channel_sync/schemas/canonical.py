"""
Canonical Booking Model

The one shape every provider adapter normalizes into. Adapters parse
leniently: a field the provider left out or sent malformed comes through
as None, and the reconciliation engine decides whether the record is
usable.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional


@dataclass
class DateRange:
    """Inclusive window of stay dates a fetch is scoped to"""
    start: date
    end: date
    
    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"Date range ends before it starts: {self.start} > {self.end}")


@dataclass
class CanonicalBooking:
    """Normalized external reservation"""
    channel_name: str
    external_booking_id: Optional[str]
    guest_name: str = ""
    guest_email: str = ""
    room_type: Optional[str] = None
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    total_amount: Optional[Decimal] = Decimal("0")
    commission: Optional[Decimal] = None
    # Canonical value, a lower-cased provider value nobody mapped, or None
    # when the provider sent no status
    status: Optional[str] = "confirmed"
    raw_payload: Any = field(default=None, repr=False)


def parse_date(value: Any) -> Optional[date]:
    """Parse an ISO date (or the date part of an ISO datetime); None if unusable"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def parse_decimal(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """Parse a money amount; returns default when missing or malformed"""
    if value is None or value == "":
        return default
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return default


def join_name(first: Optional[str], last: Optional[str]) -> str:
    return f"{first or ''} {last or ''}".strip()


def as_external_id(value: Any) -> Optional[str]:
    """Provider IDs arrive as strings or numbers; empty means missing"""
    if value is None or value == "":
        return None
    return str(value)


def as_dict(value: Any) -> dict:
    """Nested provider objects sometimes arrive as strings or numbers; treat those as empty"""
    return value if isinstance(value, dict) else {}
