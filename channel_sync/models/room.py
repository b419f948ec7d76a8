import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Numeric, DateTime
from ..database import Base
import enum


class RoomStatus(str, enum.Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"


class Room(Base):
    __tablename__ = "rooms"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    number = Column(String(20), nullable=False, unique=True)
    type = Column(String(50), nullable=False)
    floor = Column(Integer, nullable=True)
    base_rate = Column(Numeric(10, 2), default=0)
    status = Column(String(30), default=RoomStatus.AVAILABLE.value)
    
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    def __repr__(self):
        return f"<Room {self.number} status={self.status}>"
