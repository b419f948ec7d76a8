"""
Agoda Channel Adapter

Uses the Agoda YCS (Yield Control System) JSON API with X-API-Key and
X-Hotel-Id headers. hotel_id falls back to property_id.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List

from ...config import settings
from ...schemas.canonical import CanonicalBooking, DateRange, as_external_id, parse_date, parse_decimal, join_name
from .base import ChannelAdapter, StatusTable

logger = logging.getLogger(__name__)

AGODA_STATUSES = StatusTable(
    outbound={
        "confirmed": "CONFIRMED",
        "cancelled": "CANCELLED",
        "checked-in": "CHECKED_IN",
        "checked-out": "CHECKED_OUT",
        "no-show": "NO_SHOW",
    }
)


class AgodaAdapter(ChannelAdapter):
    channel_name = "agoda"
    display_name = "Agoda"
    default_base_url = "https://ycs.agoda.com/api/v1"
    status_table = AGODA_STATUSES
    
    def _get_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-API-Key": self.config.api_key or "",
            "X-Hotel-Id": self.config.hotel_id or self.config.property_id
        }
    
    def fetch_bookings(self, date_range: DateRange) -> List[CanonicalBooking]:
        response = self._request("GET", "/bookings", params={
            "start_date": date_range.start.isoformat(),
            "end_date": date_range.end.isoformat()
        })
        self._ensure_success(response)
        return self.parse_bookings(response.json())
    
    def sync_availability(self, room_type: str, target_date: date, available_count: int) -> bool:
        return self._push("syncing availability", "POST", "/inventory", json={
            "room_type_id": room_type,
            "date": target_date.isoformat(),
            "available_rooms": available_count
        })
    
    def sync_rates(self, room_type: str, target_date: date, rate: Decimal) -> bool:
        return self._push("syncing rates", "POST", "/rates", json={
            "room_type_id": room_type,
            "date": target_date.isoformat(),
            "rate": float(rate),
            "currency": settings.channel_default_currency
        })
    
    def update_booking_status(self, external_booking_id: str, canonical_status: str) -> bool:
        return self._push("updating booking status", "PATCH", f"/bookings/{external_booking_id}", json={
            "status": self.map_status_to_provider(canonical_status)
        })
    
    def parse_bookings(self, data: Dict) -> List[CanonicalBooking]:
        reservations = data.get("bookings") or data.get("reservations") or []
        
        bookings = []
        for reservation in reservations:
            if not isinstance(reservation, dict):
                bookings.append(self.unparseable_booking(reservation))
                continue
            
            bookings.append(CanonicalBooking(
                channel_name=self.channel_name,
                external_booking_id=as_external_id(reservation.get("booking_id") or reservation.get("id")),
                guest_name=join_name(reservation.get("guest_first_name"), reservation.get("guest_last_name")),
                guest_email=reservation.get("guest_email") or "",
                room_type=reservation.get("room_type_id") or reservation.get("room_type"),
                check_in=parse_date(reservation.get("check_in_date") or reservation.get("arrival_date")),
                check_out=parse_date(reservation.get("check_out_date") or reservation.get("departure_date")),
                total_amount=parse_decimal(reservation.get("total_amount") or reservation.get("price")),
                commission=parse_decimal(reservation.get("commission")),
                status=self.map_status_from_provider(reservation.get("status")),
                raw_payload=reservation
            ))
        return bookings
