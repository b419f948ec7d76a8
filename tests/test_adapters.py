"""
Tests for provider adapters over httpx.MockTransport

Tests cover:
- Request shape per provider (method, path, auth headers, body)
- Parsing of native booking payloads into CanonicalBooking
- Non-2xx and network failures: fetch raises, pushes return False
- Endpoint override
"""

import base64
import json
import pytest
import httpx
from datetime import date
from decimal import Decimal

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from channel_sync.exceptions import ChannelTransportError
from channel_sync.schemas.canonical import DateRange
from channel_sync.schemas.channel import ChannelConfig
from channel_sync.services.adapters import (
    BookingComAdapter, AgodaAdapter, ExpediaAdapter, AirbnbAdapter
)

WINDOW = DateRange(date(2026, 11, 1), date(2026, 11, 30))

BOOKING_COM_XML = """<?xml version="1.0" encoding="UTF-8"?>
<reservations>
  <reservation>
    <id>BK-1001</id>
    <status>new</status>
    <totalprice>450.00</totalprice>
    <commissionamount>67.50</commissionamount>
    <customer>
      <first_name>Ana</first_name>
      <last_name>Silva</last_name>
      <email>ana@example.com</email>
    </customer>
    <room>
      <roomid>DLX</roomid>
      <arrival_date>2026-11-01</arrival_date>
      <departure_date>2026-11-04</departure_date>
    </room>
  </reservation>
  <reservation>
    <id>BK-1002</id>
    <status>cancelled</status>
    <totalprice>120.00</totalprice>
    <customer><first_name>Li</first_name><last_name>Wei</last_name></customer>
    <room><roomid>STD</roomid><arrival_date>2026-11-10</arrival_date><departure_date>2026-11-11</departure_date></room>
  </reservation>
</reservations>
"""


@pytest.fixture
def config():
    return ChannelConfig(api_key="key-123", api_secret="secret-456", property_id="prop-1")


def ok(body=None):
    def responder(request):
        if isinstance(body, str):
            return httpx.Response(200, text=body)
        return httpx.Response(200, json=body or {})
    return responder


def status(code):
    def responder(request):
        return httpx.Response(code)
    return responder


class TestBookingComAdapter:
    
    def test_fetch_parses_reservations(self, config, make_transport):
        transport = make_transport(ok(BOOKING_COM_XML))
        adapter = BookingComAdapter(config, client=transport.client())
        
        bookings = adapter.fetch_bookings(WINDOW)
        
        assert len(bookings) == 2
        first = bookings[0]
        assert first.channel_name == "booking.com"
        assert first.external_booking_id == "BK-1001"
        assert first.guest_name == "Ana Silva"
        assert first.guest_email == "ana@example.com"
        assert first.room_type == "DLX"
        assert first.check_in == date(2026, 11, 1)
        assert first.check_out == date(2026, 11, 4)
        assert first.total_amount == Decimal("450.00")
        assert first.commission == Decimal("67.50")
        assert first.status == "confirmed"
        assert "<id>BK-1001</id>" in first.raw_payload
        assert bookings[1].status == "cancelled"
        assert bookings[1].commission is None
    
    def test_fetch_request_shape(self, config, make_transport):
        transport = make_transport(ok("<reservations/>"))
        BookingComAdapter(config, client=transport.client()).fetch_bookings(WINDOW)
        
        request = transport.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://supply-xml.booking.com/hotels/xml/reservations"
        expected = base64.b64encode(b"prop-1:key-123").decode()
        assert request.headers["Authorization"] == f"Basic {expected}"
        body = request.content.decode()
        assert "<username>prop-1</username>" in body
        assert "<version>2.5</version>" in body
        assert "<from>2026-11-01</from>" in body
    
    def test_status_update_uses_provider_vocabulary(self, config, make_transport):
        transport = make_transport(ok("<ok/>"))
        adapter = BookingComAdapter(config, client=transport.client())
        
        assert adapter.update_booking_status("BK-1001", "no-show") is True
        assert "<status>no_show</status>" in transport.requests[0].content.decode()
    
    def test_malformed_xml_is_transport_error(self, config, make_transport):
        transport = make_transport(ok("<reservations><reservation>"))
        with pytest.raises(ChannelTransportError):
            BookingComAdapter(config, client=transport.client()).fetch_bookings(WINDOW)


class TestBookingComContent:
    
    def test_update_property_sends_known_fields(self, config, make_transport):
        transport = make_transport(ok("<ok/>"))
        adapter = BookingComAdapter(config, client=transport.client())
        
        assert adapter.update_property({"name": "Dune Villas", "city": "Riyadh", "rating": 5}) is True
        
        request = transport.requests[0]
        assert str(request.url) == "https://supply-xml.booking.com/hotels/xml/property"
        body = request.content.decode()
        assert "<property><name>Dune Villas</name><city>Riyadh</city></property>" in body
        assert "rating" not in body
    
    def test_update_room_types_defaults(self, config, make_transport):
        transport = make_transport(ok("<ok/>"))
        adapter = BookingComAdapter(config, client=transport.client())
        
        assert adapter.update_room_types([
            {"id": 101, "name": "Deluxe", "max_persons": 3, "smoking": True},
            {"id": 102, "name": "Standard"},
        ]) is True
        
        body = transport.requests[0].content.decode()
        assert transport.requests[0].url.path.endswith("/rooms")
        assert "<room><id>101</id><name>Deluxe</name><max_persons>3</max_persons><smoking>yes</smoking></room>" in body
        assert "<room><id>102</id><name>Standard</name><max_persons>2</max_persons><smoking>no</smoking></room>" in body
    
    def test_upload_photo_optional_fields(self, config, make_transport):
        transport = make_transport(ok("<ok/>"))
        adapter = BookingComAdapter(config, client=transport.client())
        
        adapter.upload_photo("property", "https://cdn.example.com/front.jpg")
        adapter.upload_photo("room", "https://cdn.example.com/101.jpg", room_id="101", caption="Sea view")
        
        first, second = (r.content.decode() for r in transport.requests)
        assert "<photo><type>property</type><url>https://cdn.example.com/front.jpg</url></photo>" in first
        assert "<room_id>101</room_id>" in second
        assert "<caption>Sea view</caption>" in second
    
    def test_update_facilities(self, config, make_transport):
        transport = make_transport(ok("<ok/>"))
        adapter = BookingComAdapter(config, client=transport.client())
        
        assert adapter.update_facilities(["pool", "parking"]) is True
        body = transport.requests[0].content.decode()
        assert "<facilities><facility>pool</facility><facility>parking</facility></facilities>" in body
    
    def test_content_push_rejection_returns_false(self, config, make_transport):
        transport = make_transport(status(403))
        adapter = BookingComAdapter(config, client=transport.client())
        assert adapter.update_facilities(["pool"]) is False
    
    def test_get_reviews_parses_review_elements(self, config, make_transport):
        transport = make_transport(ok(
            "<reviews>"
            "<review><review_id>R-1</review_id><reservation_id>BK-1001</reservation_id>"
            "<reviewer>Ana</reviewer><average_score>8.5</average_score>"
            "<comment>Great stay</comment><date>2026-11-06</date></review>"
            "<review><review_id>R-2</review_id></review>"
            "</reviews>"
        ))
        adapter = BookingComAdapter(config, client=transport.client())
        
        reviews = adapter.get_reviews(WINDOW)
        
        assert [r.review_id for r in reviews] == ["R-1", "R-2"]
        first = reviews[0]
        assert (first.reservation_id, first.reviewer, first.comment) == ("BK-1001", "Ana", "Great stay")
        assert first.score == Decimal("8.5")
        assert first.review_date == date(2026, 11, 6)
        assert reviews[1].score is None
        body = transport.requests[0].content.decode()
        assert "<reviews><from>2026-11-01</from><to>2026-11-30</to></reviews>" in body
    
    def test_get_reviews_without_window(self, config, make_transport):
        transport = make_transport(ok("<reviews/>"))
        
        assert BookingComAdapter(config, client=transport.client()).get_reviews() == []
        assert "<reviews />" in transport.requests[0].content.decode()
    
    def test_get_reviews_non_2xx_raises(self, config, make_transport):
        transport = make_transport(status(500))
        with pytest.raises(ChannelTransportError) as exc_info:
            BookingComAdapter(config, client=transport.client()).get_reviews()
        assert exc_info.value.status_code == 500


class TestAgodaAdapter:
    
    def test_fetch_parses_bookings(self, config, make_transport):
        transport = make_transport(ok({"bookings": [{
            "booking_id": 98765,
            "guest_first_name": "Omar",
            "guest_last_name": "Haddad",
            "guest_email": "omar@example.com",
            "room_type_id": "SUP",
            "check_in_date": "2026-11-05",
            "check_out_date": "2026-11-07",
            "total_amount": "310.50",
            "commission": "46.58",
            "status": "CHECKED_IN",
        }]}))
        
        bookings = AgodaAdapter(config, client=transport.client()).fetch_bookings(WINDOW)
        
        assert len(bookings) == 1
        booking = bookings[0]
        assert booking.external_booking_id == "98765"
        assert booking.guest_name == "Omar Haddad"
        assert booking.status == "checked-in"
        assert booking.total_amount == Decimal("310.50")
        assert booking.raw_payload["booking_id"] == 98765
    
    def test_headers_and_params(self, config, make_transport):
        transport = make_transport(ok({"bookings": []}))
        AgodaAdapter(config, client=transport.client()).fetch_bookings(WINDOW)
        
        request = transport.requests[0]
        assert request.method == "GET"
        assert request.url.path == "/api/v1/bookings"
        assert request.url.params["start_date"] == "2026-11-01"
        assert request.url.params["end_date"] == "2026-11-30"
        assert request.headers["X-API-Key"] == "key-123"
        # hotel_id falls back to property_id
        assert request.headers["X-Hotel-Id"] == "prop-1"
    
    def test_rate_push_carries_currency(self, config, make_transport):
        transport = make_transport(ok())
        adapter = AgodaAdapter(config, client=transport.client())
        
        assert adapter.sync_rates("SUP", date(2026, 11, 5), Decimal("155.00")) is True
        body = json.loads(transport.requests[0].content)
        assert body == {"room_type_id": "SUP", "date": "2026-11-05", "rate": 155.0, "currency": "USD"}
    
    def test_fetch_non_2xx_raises_with_status_text(self, config, make_transport):
        transport = make_transport(status(503))
        
        with pytest.raises(ChannelTransportError) as exc_info:
            AgodaAdapter(config, client=transport.client()).fetch_bookings(WINDOW)
        
        assert exc_info.value.status_code == 503
        assert "Service Unavailable" in exc_info.value.message
    
    def test_missing_amount_is_left_for_reconciliation(self, config, make_transport):
        transport = make_transport(ok({"bookings": [{"booking_id": "A-1", "status": "CONFIRMED"}]}))
        booking = AgodaAdapter(config, client=transport.client()).fetch_bookings(WINDOW)[0]
        assert booking.total_amount is None
        assert booking.check_in is None
    
    def test_null_entry_becomes_unusable_booking(self, config, make_transport):
        transport = make_transport(ok({"bookings": [{"booking_id": "A-1", "status": "CONFIRMED"}, None]}))
        
        bookings = AgodaAdapter(config, client=transport.client()).fetch_bookings(WINDOW)
        
        assert [b.external_booking_id for b in bookings] == ["A-1", None]
        assert bookings[1].status is None
        assert bookings[1].raw_payload is None


class TestExpediaAdapter:
    
    def test_fetch_parses_reservations(self, config, make_transport):
        transport = make_transport(ok({"reservations": [{
            "confirmationNumber": "EXP-55",
            "primaryGuest": {"firstName": "Jo", "lastName": "Park", "email": "jo@example.com"},
            "roomTypeId": "201",
            "checkInDate": "2026-11-12",
            "checkOutDate": "2026-11-15",
            "totalCharges": {"total": 600},
            "status": "BOOKED",
        }]}))
        
        booking = ExpediaAdapter(config, client=transport.client()).fetch_bookings(WINDOW)[0]
        
        assert booking.external_booking_id == "EXP-55"
        assert booking.guest_name == "Jo Park"
        assert booking.total_amount == Decimal("600")
        assert booking.status == "confirmed"
        assert transport.requests[0].headers["Authorization"] == "Bearer key-123"
        assert transport.requests[0].url.params["hotelId"] == "prop-1"
    
    def test_zero_availability_closes_the_date(self, config, make_transport):
        transport = make_transport(ok())
        adapter = ExpediaAdapter(config, client=transport.client())
        
        assert adapter.sync_availability("201", date(2026, 11, 12), 0) is True
        
        request = transport.requests[0]
        assert request.method == "PUT"
        assert request.url.path == "/products/v2/properties/prop-1/roomTypes/201/ratePlans/availability"
        assert json.loads(request.content) == {"date": "2026-11-12", "available": 0, "closed": True}
    
    def test_push_rejection_returns_false(self, config, make_transport):
        transport = make_transport(status(400))
        adapter = ExpediaAdapter(config, client=transport.client())
        assert adapter.sync_rates("201", date(2026, 11, 12), Decimal("99")) is False
    
    def test_scalar_guest_and_charges_are_treated_as_missing(self, config, make_transport):
        transport = make_transport(ok({"reservations": [{
            "confirmationNumber": "EXP-56",
            "primaryGuest": "Jane Doe",
            "totalCharges": 300,
            "checkInDate": "2026-11-12",
            "checkOutDate": "2026-11-13",
            "status": "BOOKED",
        }, "EXP-57"]}))
        
        first, second = ExpediaAdapter(config, client=transport.client()).fetch_bookings(WINDOW)
        
        assert first.external_booking_id == "EXP-56"
        assert first.guest_name == ""
        assert first.total_amount is None
        assert second.external_booking_id is None
        assert second.raw_payload == "EXP-57"


class TestAirbnbAdapter:
    
    def test_fetch_parses_reservations(self, config, make_transport):
        transport = make_transport(ok({"reservations": [{
            "confirmation_code": "HMABC123",
            "guest": {"first_name": "Sam", "last_name": "Lee", "email": "sam@example.com"},
            "start_date": "2026-11-20",
            "end_date": "2026-11-22",
            "total_paid_amount_accurate": "275.40",
            "host_service_fee": "8.26",
            "status": "cancelled_by_guest",
        }]}))
        
        booking = AirbnbAdapter(config, client=transport.client()).fetch_bookings(WINDOW)[0]
        
        assert booking.external_booking_id == "HMABC123"
        assert booking.status == "cancelled"
        assert booking.commission == Decimal("8.26")
        assert booking.room_type == "prop-1"
        
        request = transport.requests[0]
        assert request.headers["X-Airbnb-API-Key"] == "key-123"
        assert request.headers["Authorization"] == "Bearer secret-456"
    
    def test_scalar_guest_is_treated_as_missing(self, config, make_transport):
        transport = make_transport(ok({"reservations": [
            {"confirmation_code": "HMX", "guest": "Sam Lee", "price": "90", "status": "accepted"},
            7,
        ]}))
        
        first, second = AirbnbAdapter(config, client=transport.client()).fetch_bookings(WINDOW)
        
        assert (first.external_booking_id, first.guest_name, first.guest_email) == ("HMX", "", "")
        assert first.total_amount == Decimal("90")
        assert (second.external_booking_id, second.raw_payload) == (None, 7)

    def test_availability_blocks_when_zero(self, config, make_transport):
        transport = make_transport(ok())
        AirbnbAdapter(config, client=transport.client()).sync_availability("prop-1", date(2026, 11, 20), 0)
        
        body = json.loads(transport.requests[0].content)
        assert body["available"] is False
        assert body["availability"] == "blocked"


class TestTransport:
    
    def test_network_error_fetch_raises(self, config):
        def responder(request):
            raise httpx.ConnectError("connection refused", request=request)
        client = httpx.Client(transport=httpx.MockTransport(responder))
        
        with pytest.raises(ChannelTransportError):
            AgodaAdapter(config, client=client).fetch_bookings(WINDOW)
    
    def test_timeout_push_returns_false(self, config):
        def responder(request):
            raise httpx.ReadTimeout("timed out", request=request)
        client = httpx.Client(transport=httpx.MockTransport(responder))
        
        assert AirbnbAdapter(config, client=client).sync_rates("x", date(2026, 11, 1), Decimal("10")) is False
    
    def test_endpoint_override(self, make_transport):
        transport = make_transport(ok({"bookings": []}))
        config = ChannelConfig(api_key="k", property_id="p", endpoint="https://sandbox.example.com/ycs/")
        
        AgodaAdapter(config, client=transport.client()).fetch_bookings(WINDOW)
        
        assert str(transport.requests[0].url).startswith("https://sandbox.example.com/ycs/bookings")
    
    def test_timeout_defaults_from_settings(self, config):
        from channel_sync.config import settings
        assert AgodaAdapter(config).timeout == settings.channel_timeout_seconds
        assert AgodaAdapter(config, timeout=5).timeout == 5
