from .canonical import CanonicalBooking, DateRange, parse_date, parse_decimal
from .channel import ChannelConfig

__all__ = ["CanonicalBooking", "DateRange", "parse_date", "parse_decimal", "ChannelConfig"]
