"""
Airbnb Channel Adapter

Uses the Airbnb Host API: X-Airbnb-API-Key header plus a Bearer token
taken from api_secret. property_id is the listing ID.

Airbnb splits cancellation by party; both arrive as canonical "cancelled",
and outbound cancellations are always sent as host cancellations.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List

from ...config import settings
from ...schemas.canonical import CanonicalBooking, DateRange, as_dict, as_external_id, parse_date, parse_decimal, join_name
from .base import ChannelAdapter, StatusTable

logger = logging.getLogger(__name__)

AIRBNB_STATUSES = StatusTable(
    outbound={
        "confirmed": "accepted",
        "cancelled": "cancelled_by_host",
        "checked-in": "checked_in",
        "checked-out": "completed",
        "no-show": "no_show",
    },
    inbound_aliases={
        "cancelled_by_guest": "cancelled",
        "cancelled_by_admin": "cancelled",
    },
    outbound_fallback=str,
)


class AirbnbAdapter(ChannelAdapter):
    channel_name = "airbnb"
    display_name = "Airbnb"
    default_base_url = "https://api.airbnb.com/v2/host"
    status_table = AIRBNB_STATUSES
    
    def _get_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-Airbnb-API-Key": self.config.api_key or "",
            "Authorization": f"Bearer {self.config.api_secret or ''}"
        }
    
    def fetch_bookings(self, date_range: DateRange) -> List[CanonicalBooking]:
        response = self._request("GET", "/reservations", params={
            "listing_id": self.config.property_id,
            "start_date": date_range.start.isoformat(),
            "end_date": date_range.end.isoformat()
        })
        self._ensure_success(response)
        return self.parse_bookings(response.json())
    
    def sync_availability(self, room_type: str, target_date: date, available_count: int) -> bool:
        # Listings are single units: any count above zero opens the night
        return self._push("syncing availability", "PUT", "/calendar", json={
            "listing_id": self.config.property_id,
            "date": target_date.isoformat(),
            "available": available_count > 0,
            "availability": "available" if available_count > 0 else "blocked"
        })
    
    def sync_rates(self, room_type: str, target_date: date, rate: Decimal) -> bool:
        return self._push("syncing rates", "PUT", "/pricing", json={
            "listing_id": self.config.property_id,
            "date": target_date.isoformat(),
            "price": float(rate),
            "currency": settings.channel_default_currency
        })
    
    def update_booking_status(self, external_booking_id: str, canonical_status: str) -> bool:
        return self._push("updating booking status", "PATCH", f"/reservations/{external_booking_id}", json={
            "status": self.map_status_to_provider(canonical_status)
        })
    
    def parse_bookings(self, data: Dict) -> List[CanonicalBooking]:
        reservations = data.get("reservations") or []
        
        bookings = []
        for reservation in reservations:
            if not isinstance(reservation, dict):
                bookings.append(self.unparseable_booking(reservation))
                continue
            
            guest = as_dict(reservation.get("guest"))
            
            bookings.append(CanonicalBooking(
                channel_name=self.channel_name,
                external_booking_id=as_external_id(reservation.get("confirmation_code") or reservation.get("id")),
                guest_name=join_name(guest.get("first_name"), guest.get("last_name")),
                guest_email=guest.get("email") or "",
                room_type=reservation.get("listing_id") or self.config.property_id,
                check_in=parse_date(reservation.get("start_date") or reservation.get("check_in")),
                check_out=parse_date(reservation.get("end_date") or reservation.get("check_out")),
                total_amount=parse_decimal(reservation.get("total_paid_amount_accurate") or reservation.get("price")),
                commission=parse_decimal(reservation.get("host_service_fee")),
                status=self.map_status_from_provider(reservation.get("status")),
                raw_payload=reservation
            ))
        return bookings
