import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, Boolean, Index
from ..database import Base


class ChannelConnection(Base):
    """
    Credentials and status for one external channel (Booking.com, Agoda, ...).
    Active connections receive availability/rate pushes from the sync queue.
    """
    __tablename__ = "channel_connections"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    channel_name = Column(String(50), nullable=False)
    
    # Credentials (encrypted in production)
    api_key = Column(Text, nullable=True)
    api_secret = Column(Text, nullable=True)
    
    # Provider-side identifiers
    property_id = Column(String(100), nullable=False)
    hotel_id = Column(String(100), nullable=True)
    endpoint = Column(String(500), nullable=True)
    
    is_active = Column(Boolean, default=True)
    last_sync_at = Column(DateTime, nullable=True)
    
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    __table_args__ = (
        Index("ix_channel_connection_name", "channel_name"),
    )
    
    def to_config(self):
        """Build the ChannelConfig used by provider adapters"""
        from ..schemas.channel import ChannelConfig
        
        return ChannelConfig(
            api_key=self.api_key,
            api_secret=self.api_secret,
            property_id=self.property_id,
            endpoint=self.endpoint,
            hotel_id=self.hotel_id
        )
    
    def __repr__(self):
        return f"<ChannelConnection {self.channel_name} property={self.property_id}>"
