import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Numeric, DateTime
from ..database import Base


class Guest(Base):
    __tablename__ = "guests"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    
    # Loyalty
    total_spent = Column(Numeric(12, 2), default=0)
    loyalty_points = Column(Integer, default=0)
    loyalty_tier = Column(String(50), default="Bronze")
    
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()
    
    def __repr__(self):
        return f"<Guest {self.full_name} tier={self.loyalty_tier}>"
