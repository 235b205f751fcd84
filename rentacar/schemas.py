"""
Pipeline records exchanged over HTTP and the queues.

Field names are snake_case in Python and camelCase on the wire
(``bookingId``, ``totalAmount``...). Use ``to_message()`` to get the
JSON-ready dict that goes onto a queue.
"""
import math
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Client-supplied values are copied through as sent, whatever their JSON type
Passthrough = Optional[Any]

# Daily price per car class, as quoted by the booking form
CAR_PRICES = {
    "economy": 30,
    "comfort": 50,
    "luxury": 100,
    "suv": 80,
}


def utc_now_iso() -> str:
    """Current UTC time as ISO 8601 with millisecond precision and Z suffix"""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def quote_booking(car_type: str, pickup_date: str, return_date: str) -> tuple:
    """
    Compute rental days and total amount for a car class.

    Args:
        car_type: Car class key from CAR_PRICES
        pickup_date: ISO date, e.g. '2026-02-01'
        return_date: ISO date, e.g. '2026-02-05'

    Returns:
        (rental_days, total_amount)

    Raises:
        KeyError: unknown car class
        ValueError: unparseable dates
    """
    price = CAR_PRICES[car_type]
    start = datetime.fromisoformat(pickup_date)
    end = datetime.fromisoformat(return_date)
    days = math.ceil((end - start).total_seconds() / 86400)
    return days, days * price


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_message(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class BookingRequest(CamelModel):
    """Booking form payload. Values are not validated."""

    model_config = ConfigDict(extra="allow")

    customer_name: Passthrough = None
    email: Passthrough = None
    phone: Passthrough = None
    car_type: Passthrough = None
    pickup_date: Passthrough = None
    return_date: Passthrough = None
    pickup_location: Passthrough = None
    rental_days: Passthrough = None
    total_amount: Passthrough = None
    booking_date: Passthrough = None

    def with_quote(self) -> "BookingRequest":
        """Fill rental_days/total_amount from the price table when the client left them out"""
        if self.total_amount is not None:
            return self
        try:
            days, total = quote_booking(self.car_type, self.pickup_date, self.return_date)
        except (KeyError, TypeError, ValueError):
            return self
        return self.model_copy(update={"rental_days": days, "total_amount": total})


class BookingRecord(BookingRequest):
    """Booking as handed to the rent queue"""

    booking_id: str
    status: Passthrough = "pending"
    created_at: Passthrough = None


class RentalRecord(CamelModel):
    id: str
    customer_name: Passthrough = None
    email: Passthrough = None
    phone: Passthrough = None
    car_type: Passthrough = None
    pickup_date: Passthrough = None
    return_date: Passthrough = None
    pickup_location: Passthrough = None
    rental_days: Passthrough = None
    total_amount: Passthrough = None
    status: str = "confirmed"
    processed_at: str
    booking_date: Passthrough = None


class PaymentRequest(CamelModel):
    booking_id: str
    customer_name: Passthrough = None
    email: Passthrough = None
    amount: Passthrough = None
    status: Passthrough = "pending"
    created_at: Passthrough = None


class PaymentRecord(CamelModel):
    id: str
    booking_id: str
    customer_name: Passthrough = None
    email: Passthrough = None
    amount: Passthrough = None
    status: str = "completed"
    payment_method: str = "credit_card"
    transaction_id: str
    processed_at: str


class NotificationRecord(CamelModel):
    booking_id: str
    email: Passthrough = None
    type: str = "booking_confirmation"
    status: str = "sent"
    sent_at: str
