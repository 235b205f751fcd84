from sqlalchemy import Column, String, Integer, Float, DateTime, func
from rentacar.database import Base


class Rental(Base):
    """Store confirmed rentals, keyed by booking ID"""
    __tablename__ = "rentals"

    id = Column(String(64), primary_key=True, index=True)  # bookingId
    customer_name = Column(String(255))
    email = Column(String(255), index=True)
    phone = Column(String(50), nullable=True)
    car_type = Column(String(100))
    pickup_date = Column(String(32))
    return_date = Column(String(32))
    pickup_location = Column(String(255), nullable=True)
    rental_days = Column(Integer, nullable=True)
    total_amount = Column(Float, nullable=True)
    status = Column(String(32))
    booking_date = Column(String(64), nullable=True)
    processed_at = Column(String(64))
    created_at = Column(DateTime, default=func.now())
