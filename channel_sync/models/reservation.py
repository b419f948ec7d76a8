import uuid
from datetime import datetime
from sqlalchemy import Column, String, Date, Numeric, ForeignKey, DateTime
from ..database import Base


class Reservation(Base):
    __tablename__ = "reservations"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    guest_id = Column(String(36), ForeignKey("guests.id", ondelete="SET NULL"), nullable=True)
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="SET NULL"), nullable=True)
    confirmation_number = Column(String(50), unique=True, nullable=True)
    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    status = Column(String(30), default="confirmed")
    total_amount = Column(Numeric(12, 2), nullable=True)
    
    # "direct" or the channel name the booking arrived through
    source = Column(String(50), nullable=True)
    
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    def __repr__(self):
        return f"<Reservation {self.id} status={self.status}>"
