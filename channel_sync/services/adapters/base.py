"""
Channel Adapter Base

Shared plumbing for provider adapters:
- One httpx request helper that turns network errors, timeouts and non-2xx
  responses into ChannelTransportError
- Best-effort push helper (availability, rates, status) that reports
  transport rejection as False instead of raising
- Bidirectional per-provider status tables

Each provider module defines its own StatusTable next to its adapter;
providers do not share a status vocabulary.
"""

import logging
import time
from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, List, Optional

import httpx

from ...config import settings
from ...exceptions import ChannelTransportError
from ...schemas.canonical import CanonicalBooking, DateRange
from ...schemas.channel import ChannelConfig

logger = logging.getLogger(__name__)


class StatusTable:
    """
    Maps canonical statuses to a provider's vocabulary and back.
    
    `outbound` must be one-to-one (canonical -> provider) so that every
    canonical status survives a round trip. `inbound_aliases` adds extra
    provider values that only ever arrive from the provider.
    """
    
    def __init__(
        self,
        outbound: Dict[str, str],
        inbound_aliases: Optional[Dict[str, str]] = None,
        outbound_fallback: Callable[[str], str] = str.upper
    ):
        if len(set(outbound.values())) != len(outbound):
            raise ValueError("Outbound status table must be one-to-one")
        self.outbound = dict(outbound)
        self.inbound = {provider: canonical for canonical, provider in outbound.items()}
        for provider_status, canonical in (inbound_aliases or {}).items():
            self.inbound.setdefault(provider_status, canonical)
        self.outbound_fallback = outbound_fallback
    
    def to_provider(self, canonical_status: str) -> str:
        if canonical_status in self.outbound:
            return self.outbound[canonical_status]
        return self.outbound_fallback(canonical_status)
    
    def to_canonical(self, provider_status: Optional[str]) -> Optional[str]:
        """
        Unmapped values pass through lower-cased rather than failing the fetch.
        A missing status stays None; reconciliation rejects the record.
        """
        if provider_status is None or provider_status == "":
            return None
        provider_status = str(provider_status)
        if provider_status in self.inbound:
            return self.inbound[provider_status]
        return provider_status.lower()


class ChannelAdapter(ABC):
    """
    Interface every channel provider implements.
    
    - fetch_bookings raises ChannelTransportError on transport failure
    - sync_availability / sync_rates / update_booking_status return False
      on transport failure; the caller owns retry scheduling
    """
    
    channel_name: str = ""
    display_name: str = ""
    default_base_url: str = ""
    status_table: StatusTable
    
    def __init__(
        self,
        config: ChannelConfig,
        client: Optional[httpx.Client] = None,
        timeout: Optional[float] = None
    ):
        self.config = config
        self.client = client
        self.timeout = timeout if timeout is not None else settings.channel_timeout_seconds
    
    @property
    def base_url(self) -> str:
        return (self.config.endpoint or self.default_base_url).rstrip("/")
    
    @abstractmethod
    def _get_headers(self) -> Dict[str, str]:
        """Provider-specific auth and content headers"""
    
    @abstractmethod
    def fetch_bookings(self, date_range: DateRange) -> List[CanonicalBooking]:
        """Pull bookings for the window and normalize them"""
    
    @abstractmethod
    def sync_availability(self, room_type: str, target_date: date, available_count: int) -> bool:
        """Push the number of sellable rooms for one date"""
    
    @abstractmethod
    def sync_rates(self, room_type: str, target_date: date, rate: Decimal) -> bool:
        """Push the nightly rate for one date"""
    
    @abstractmethod
    def update_booking_status(self, external_booking_id: str, canonical_status: str) -> bool:
        """Push a status change using the provider's vocabulary"""
    
    # ==================
    # Status mapping
    # ==================
    
    def map_status_to_provider(self, canonical_status: str) -> str:
        return self.status_table.to_provider(canonical_status)
    
    def map_status_from_provider(self, provider_status: Optional[str]) -> Optional[str]:
        return self.status_table.to_canonical(provider_status)
    
    def unparseable_booking(self, entry) -> CanonicalBooking:
        """Stand-in for a list entry that is not an object; fails validation downstream"""
        logger.warning(f"{self.display_name} returned a non-object reservation entry: {entry!r}")
        return CanonicalBooking(
            channel_name=self.channel_name,
            external_booking_id=None,
            total_amount=None,
            status=None,
            raw_payload=entry
        )
    
    # ==================
    # Transport
    # ==================
    
    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """
        Send one request to the provider.
        
        Raises ChannelTransportError on network errors and timeouts.
        Non-2xx responses are returned; callers decide how to treat them.
        """
        url = f"{self.base_url}{path}"
        headers = self._get_headers()
        start_time = time.time()
        
        try:
            if self.client is not None:
                response = self.client.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.request(method, url, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            raise ChannelTransportError(f"{self.display_name} request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise ChannelTransportError(f"{self.display_name} request failed: {e}") from e
        
        duration_ms = int((time.time() - start_time) * 1000)
        logger.debug(f"{self.display_name} {method} {url} -> {response.status_code} ({duration_ms}ms)")
        return response
    
    def _ensure_success(self, response: httpx.Response) -> None:
        if not response.is_success:
            raise ChannelTransportError(
                f"{self.display_name} API error: {response.reason_phrase or response.status_code}",
                status_code=response.status_code
            )
    
    def _push(self, action: str, method: str, path: str, **kwargs) -> bool:
        """Best-effort push: transport failures and rejections become False"""
        try:
            response = self._request(method, path, **kwargs)
        except ChannelTransportError as e:
            logger.error(f"Error {action} on {self.display_name}: {e}")
            return False
        
        if not response.is_success:
            logger.warning(
                f"{self.display_name} rejected {action}: "
                f"{response.status_code} {response.reason_phrase}"
            )
            return False
        return True
