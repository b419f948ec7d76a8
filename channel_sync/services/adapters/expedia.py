"""
Expedia Channel Adapter

Uses Expedia Partner Central (EPC) JSON APIs with a Bearer token:
- /reservations/v3 for bookings and status changes
- /products/v2/properties/{id}/roomTypes/{roomType}/ratePlans/... for ARI
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List

from ...config import settings
from ...schemas.canonical import CanonicalBooking, DateRange, as_dict, as_external_id, parse_date, parse_decimal, join_name
from .base import ChannelAdapter, StatusTable

logger = logging.getLogger(__name__)

EXPEDIA_STATUSES = StatusTable(
    outbound={
        "confirmed": "BOOKED",
        "cancelled": "CANCELLED",
        "checked-in": "CHECKED_IN",
        "checked-out": "CHECKED_OUT",
        "no-show": "NO_SHOW",
    }
)


class ExpediaAdapter(ChannelAdapter):
    channel_name = "expedia"
    display_name = "Expedia"
    default_base_url = "https://services.expediapartnercentral.com"
    status_table = EXPEDIA_STATUSES
    
    def _get_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"Bearer {self.config.api_key or ''}"
        }
    
    def _rate_plan_path(self, room_type: str, resource: str) -> str:
        return f"/products/v2/properties/{self.config.property_id}/roomTypes/{room_type}/ratePlans/{resource}"
    
    def fetch_bookings(self, date_range: DateRange) -> List[CanonicalBooking]:
        response = self._request("GET", "/reservations/v3", params={
            "hotelId": self.config.hotel_id or self.config.property_id,
            "from": date_range.start.isoformat(),
            "to": date_range.end.isoformat()
        })
        self._ensure_success(response)
        return self.parse_bookings(response.json())
    
    def sync_availability(self, room_type: str, target_date: date, available_count: int) -> bool:
        return self._push("syncing availability", "PUT", self._rate_plan_path(room_type, "availability"), json={
            "date": target_date.isoformat(),
            "available": available_count,
            "closed": available_count == 0
        })
    
    def sync_rates(self, room_type: str, target_date: date, rate: Decimal) -> bool:
        return self._push("syncing rates", "PUT", self._rate_plan_path(room_type, "rates"), json={
            "date": target_date.isoformat(),
            "baseRate": float(rate),
            "currency": settings.channel_default_currency
        })
    
    def update_booking_status(self, external_booking_id: str, canonical_status: str) -> bool:
        return self._push("updating booking status", "PUT", f"/reservations/v3/{external_booking_id}", json={
            "status": self.map_status_to_provider(canonical_status)
        })
    
    def parse_bookings(self, data: Dict) -> List[CanonicalBooking]:
        reservations = data.get("reservations") or data.get("entity") or []
        
        bookings = []
        for reservation in reservations:
            if not isinstance(reservation, dict):
                bookings.append(self.unparseable_booking(reservation))
                continue
            
            guest = as_dict(reservation.get("primaryGuest") or reservation.get("guest"))
            charges = as_dict(reservation.get("totalCharges"))
            
            bookings.append(CanonicalBooking(
                channel_name=self.channel_name,
                external_booking_id=as_external_id(reservation.get("confirmationNumber") or reservation.get("itineraryId")),
                guest_name=join_name(guest.get("firstName"), guest.get("lastName")),
                guest_email=guest.get("email") or "",
                room_type=reservation.get("roomTypeId") or reservation.get("roomType"),
                check_in=parse_date(reservation.get("checkInDate") or reservation.get("arrivalDate")),
                check_out=parse_date(reservation.get("checkOutDate") or reservation.get("departureDate")),
                total_amount=parse_decimal(charges.get("total") or reservation.get("amount")),
                commission=parse_decimal(reservation.get("commission")),
                status=self.map_status_from_provider(reservation.get("status")),
                raw_payload=reservation
            ))
        return bookings
