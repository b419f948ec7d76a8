"""
Provider adapters, selected by channel name.
"""

from typing import Dict, Optional, Type

import httpx

from ...exceptions import UnknownChannelError
from ...schemas.channel import ChannelConfig
from .base import ChannelAdapter, StatusTable
from .booking_com import BookingComAdapter
from .agoda import AgodaAdapter
from .expedia import ExpediaAdapter
from .airbnb import AirbnbAdapter

ADAPTERS: Dict[str, Type[ChannelAdapter]] = {
    BookingComAdapter.channel_name: BookingComAdapter,
    AgodaAdapter.channel_name: AgodaAdapter,
    ExpediaAdapter.channel_name: ExpediaAdapter,
    AirbnbAdapter.channel_name: AirbnbAdapter,
}


def is_channel(name: Optional[str]) -> bool:
    return bool(name) and name.lower() in ADAPTERS


def get_channel_adapter(
    channel_name: str,
    config: ChannelConfig,
    client: Optional[httpx.Client] = None,
    timeout: Optional[float] = None
) -> ChannelAdapter:
    """Factory: build the adapter registered for a channel name"""
    adapter_cls = ADAPTERS.get((channel_name or "").lower())
    if adapter_cls is None:
        raise UnknownChannelError(channel_name)
    return adapter_cls(config, client=client, timeout=timeout)


__all__ = [
    "ADAPTERS", "ChannelAdapter", "StatusTable", "get_channel_adapter", "is_channel",
    "BookingComAdapter", "AgodaAdapter", "ExpediaAdapter", "AirbnbAdapter",
]
