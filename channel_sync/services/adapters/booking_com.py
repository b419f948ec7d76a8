"""
Booking.com Channel Adapter

Uses Booking.com's XML connectivity API:
- POST XML bodies with HTTP Basic auth (property_id:api_key)
- Credentials are repeated inside the request envelope
- Reservation responses are parsed with ElementTree; the raw XML fragment
  of each reservation is kept as its raw payload
- Content pushes (property, room types, photos, facilities) and guest
  reviews use the same envelope
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx

from ...exceptions import ChannelTransportError
from ...schemas.canonical import CanonicalBooking, DateRange, parse_date, parse_decimal, join_name
from .base import ChannelAdapter, StatusTable

logger = logging.getLogger(__name__)

API_VERSION = "2.5"

BOOKING_COM_STATUSES = StatusTable(
    outbound={
        "confirmed": "new",
        "cancelled": "cancelled",
        "checked-in": "checked_in",
        "checked-out": "checked_out",
        "no-show": "no_show",
    },
    inbound_aliases={
        "modified": "confirmed",
    },
    outbound_fallback=str.lower,
)

PROPERTY_FIELDS = ("name", "address", "city", "country", "phone", "email")


@dataclass
class GuestReview:
    review_id: Optional[str]
    reservation_id: Optional[str] = None
    reviewer: str = ""
    score: Optional[Decimal] = None
    comment: str = ""
    review_date: Optional[date] = None


class BookingComAdapter(ChannelAdapter):
    channel_name = "booking.com"
    display_name = "Booking.com"
    default_base_url = "https://supply-xml.booking.com/hotels/xml"
    status_table = BOOKING_COM_STATUSES
    
    def _get_headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/xml"}
    
    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        auth = httpx.BasicAuth(self.config.property_id, self.config.api_key or "")
        return super()._request(method, path, auth=auth, **kwargs)
    
    def fetch_bookings(self, date_range: DateRange) -> List[CanonicalBooking]:
        request = self._envelope()
        reservations = ET.SubElement(request, "reservations")
        ET.SubElement(reservations, "from").text = date_range.start.isoformat()
        ET.SubElement(reservations, "to").text = date_range.end.isoformat()
        
        response = self._request("POST", "/reservations", content=self._serialize(request))
        self._ensure_success(response)
        return self.parse_bookings(response.text)
    
    def sync_availability(self, room_type: str, target_date: date, available_count: int) -> bool:
        request = self._envelope()
        availability = ET.SubElement(request, "availability")
        ET.SubElement(availability, "room_id").text = str(room_type)
        ET.SubElement(availability, "date").text = target_date.isoformat()
        ET.SubElement(availability, "roomsToSell").text = str(available_count)
        return self._push("syncing availability", "POST", "/availability", content=self._serialize(request))
    
    def sync_rates(self, room_type: str, target_date: date, rate: Decimal) -> bool:
        request = self._envelope()
        rates = ET.SubElement(request, "rates")
        ET.SubElement(rates, "room_id").text = str(room_type)
        ET.SubElement(rates, "date").text = target_date.isoformat()
        ET.SubElement(rates, "rate").text = str(rate)
        return self._push("syncing rates", "POST", "/rates", content=self._serialize(request))
    
    def update_booking_status(self, external_booking_id: str, canonical_status: str) -> bool:
        request = self._envelope()
        ET.SubElement(request, "booking_id").text = str(external_booking_id)
        ET.SubElement(request, "status").text = self.map_status_to_provider(canonical_status)
        return self._push("updating booking status", "POST", "/bookings", content=self._serialize(request))
    
    # ==================
    # Content
    # ==================
    
    def update_property(self, property_data: Dict[str, Any]) -> bool:
        """Push the property's name and contact details"""
        request = self._envelope()
        prop = ET.SubElement(request, "property")
        for tag in PROPERTY_FIELDS:
            value = property_data.get(tag)
            if value is not None:
                ET.SubElement(prop, tag).text = str(value)
        return self._push("updating property", "POST", "/property", content=self._serialize(request))
    
    def update_room_types(self, room_types: List[Dict[str, Any]]) -> bool:
        request = self._envelope()
        rooms = ET.SubElement(request, "rooms")
        for room_type in room_types:
            room = ET.SubElement(rooms, "room")
            ET.SubElement(room, "id").text = str(room_type["id"])
            ET.SubElement(room, "name").text = str(room_type.get("name") or "")
            ET.SubElement(room, "max_persons").text = str(room_type.get("max_persons") or 2)
            ET.SubElement(room, "smoking").text = "yes" if room_type.get("smoking") else "no"
        return self._push("updating room types", "POST", "/rooms", content=self._serialize(request))
    
    def upload_photo(
        self,
        photo_type: str,
        photo_url: str,
        room_id: Optional[str] = None,
        caption: Optional[str] = None
    ) -> bool:
        """Attach a photo by URL; room photos carry a room_id, property photos do not"""
        request = self._envelope()
        photo = ET.SubElement(request, "photo")
        ET.SubElement(photo, "type").text = photo_type
        if room_id:
            ET.SubElement(photo, "room_id").text = str(room_id)
        ET.SubElement(photo, "url").text = photo_url
        if caption:
            ET.SubElement(photo, "caption").text = caption
        return self._push("uploading photo", "POST", "/photos", content=self._serialize(request))
    
    def update_facilities(self, facilities: List[str]) -> bool:
        request = self._envelope()
        element = ET.SubElement(request, "facilities")
        for facility in facilities:
            ET.SubElement(element, "facility").text = str(facility)
        return self._push("updating facilities", "POST", "/facilities", content=self._serialize(request))
    
    # ==================
    # Reviews
    # ==================
    
    def get_reviews(self, date_range: Optional[DateRange] = None) -> List[GuestReview]:
        """
        Fetch guest reviews, optionally limited to a window.
        
        Raises ChannelTransportError like fetch_bookings does.
        """
        request = self._envelope()
        reviews = ET.SubElement(request, "reviews")
        if date_range is not None:
            ET.SubElement(reviews, "from").text = date_range.start.isoformat()
            ET.SubElement(reviews, "to").text = date_range.end.isoformat()
        
        response = self._request("POST", "/reviews", content=self._serialize(request))
        self._ensure_success(response)
        return self.parse_reviews(response.text)
    
    def parse_reviews(self, xml_text: str) -> List[GuestReview]:
        try:
            root = ET.fromstring(xml_text)
        except ET.ParseError as e:
            raise ChannelTransportError(f"Booking.com returned malformed XML: {e}") from e
        
        return [
            GuestReview(
                review_id=_text(review, "review_id") or _text(review, "id"),
                reservation_id=_text(review, "reservation_id"),
                reviewer=_text(review, "reviewer") or "",
                score=parse_decimal(_text(review, "average_score") or _text(review, "score")),
                comment=_text(review, "comment") or "",
                review_date=parse_date(_text(review, "date"))
            )
            for review in root.iter("review")
        ]
    
    # ==================
    # XML
    # ==================
    
    def _envelope(self) -> ET.Element:
        request = ET.Element("request")
        ET.SubElement(request, "username").text = self.config.property_id
        ET.SubElement(request, "password").text = self.config.api_key or ""
        ET.SubElement(request, "version").text = API_VERSION
        return request
    
    @staticmethod
    def _serialize(element: ET.Element) -> bytes:
        return ET.tostring(element, encoding="utf-8", xml_declaration=True)
    
    def parse_bookings(self, xml_text: str) -> List[CanonicalBooking]:
        """Parse a <reservations> document into canonical bookings"""
        try:
            root = ET.fromstring(xml_text)
        except ET.ParseError as e:
            raise ChannelTransportError(f"Booking.com returned malformed XML: {e}") from e
        
        bookings = []
        for reservation in root.iter("reservation"):
            customer = reservation.find("customer")
            room = reservation.find("room")
            
            bookings.append(CanonicalBooking(
                channel_name=self.channel_name,
                external_booking_id=_text(reservation, "id"),
                guest_name=join_name(_text(customer, "first_name"), _text(customer, "last_name")),
                guest_email=_text(customer, "email") or "",
                room_type=_text(room, "roomid") or _text(reservation, "room_id"),
                check_in=parse_date(_text(room, "arrival_date") or _text(reservation, "checkin")),
                check_out=parse_date(_text(room, "departure_date") or _text(reservation, "checkout")),
                total_amount=parse_decimal(_text(reservation, "totalprice")),
                commission=parse_decimal(_text(reservation, "commissionamount")),
                status=self.map_status_from_provider(_text(reservation, "status")),
                raw_payload=ET.tostring(reservation, encoding="unicode")
            ))
        
        return bookings


def _text(element: Optional[ET.Element], tag: str) -> Optional[str]:
    if element is None:
        return None
    child = element.find(tag)
    if child is None or child.text is None:
        return None
    return child.text.strip()
