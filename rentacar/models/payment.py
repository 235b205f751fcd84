from sqlalchemy import Column, String, Float, DateTime, func
from rentacar.database import Base


class Payment(Base):
    """Store completed payments, keyed by payment-<bookingId>"""
    __tablename__ = "payments"

    id = Column(String(80), primary_key=True, index=True)
    booking_id = Column(String(64), index=True)
    customer_name = Column(String(255))
    email = Column(String(255))
    amount = Column(Float, nullable=True)
    status = Column(String(32))
    payment_method = Column(String(32))
    transaction_id = Column(String(64))  # Time based, not unique under concurrency
    processed_at = Column(String(64))
    created_at = Column(DateTime, default=func.now())
