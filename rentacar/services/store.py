"""
Record store for rentals and payments
"""
import json
import logging
from typing import Optional

from sqlalchemy.orm import sessionmaker

from rentacar.database import create_session_factory
from rentacar.models import Rental, Payment
from rentacar.schemas import RentalRecord, PaymentRecord

logger = logging.getLogger(__name__)


class SqlRecordStore:
    """Persist pipeline records with SQLAlchemy"""

    enabled = True

    def __init__(self, session_factory: sessionmaker):
        self.SessionLocal = session_factory

    @classmethod
    def from_url(cls, database_url: str) -> "SqlRecordStore":
        return cls(create_session_factory(database_url))

    def _insert(self, row) -> bool:
        # Insert only: a replayed message hits the primary key and fails
        db = self.SessionLocal()
        try:
            db.add(row)
            db.commit()
            return True
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def save_rental(self, record: RentalRecord) -> bool:
        """
        Insert a rental row.

        Returns:
            True once written

        Raises:
            sqlalchemy.exc.SQLAlchemyError: store unreachable or row rejected
        """
        row = Rental(
            id=record.id,
            customer_name=record.customer_name,
            email=record.email,
            phone=record.phone,
            car_type=record.car_type,
            pickup_date=record.pickup_date,
            return_date=record.return_date,
            pickup_location=record.pickup_location,
            rental_days=record.rental_days,
            total_amount=record.total_amount,
            status=record.status,
            booking_date=record.booking_date,
            processed_at=record.processed_at,
        )
        return self._insert(row)

    def save_payment(self, record: PaymentRecord) -> bool:
        """Insert a payment row. Same semantics as save_rental."""
        row = Payment(
            id=record.id,
            booking_id=record.booking_id,
            customer_name=record.customer_name,
            email=record.email,
            amount=record.amount,
            status=record.status,
            payment_method=record.payment_method,
            transaction_id=record.transaction_id,
            processed_at=record.processed_at,
        )
        return self._insert(row)

    def get_rental(self, rental_id: str) -> Optional[Rental]:
        db = self.SessionLocal()
        try:
            return db.query(Rental).filter(Rental.id == rental_id).first()
        finally:
            db.close()

    def get_payment(self, payment_id: str) -> Optional[Payment]:
        db = self.SessionLocal()
        try:
            return db.query(Payment).filter(Payment.id == payment_id).first()
        finally:
            db.close()


class DisabledRecordStore:
    """Used when no database is configured: records are only logged"""

    enabled = False

    def save_rental(self, record: RentalRecord) -> bool:
        logger.info(f"Rental record (local): {json.dumps(record.to_message(), indent=2)}")
        return False

    def save_payment(self, record: PaymentRecord) -> bool:
        logger.info(f"Payment record (local): {json.dumps(record.to_message(), indent=2)}")
        return False

    def get_rental(self, rental_id: str) -> None:
        return None

    def get_payment(self, payment_id: str) -> None:
        return None
