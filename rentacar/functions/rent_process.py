"""
Rent stage: booking message -> rental record -> payment request
"""
import logging

from rentacar.functions.results import StageResult, run_effect, APPLIED
from rentacar.schemas import BookingRecord, RentalRecord, PaymentRequest, utc_now_iso
from rentacar.services.queue_service import decode_message

logger = logging.getLogger(__name__)


def build_rental_record(booking: BookingRecord) -> RentalRecord:
    """Confirm a booking. No availability check is made."""
    return RentalRecord(
        id=booking.booking_id,
        customer_name=booking.customer_name,
        email=booking.email,
        phone=booking.phone,
        car_type=booking.car_type,
        pickup_date=booking.pickup_date,
        return_date=booking.return_date,
        pickup_location=booking.pickup_location,
        rental_days=booking.rental_days,
        total_amount=booking.total_amount,
        status="confirmed",
        processed_at=utc_now_iso(),
        booking_date=booking.booking_date,
    )


def build_payment_request(rental: RentalRecord) -> PaymentRequest:
    return PaymentRequest(
        booking_id=rental.id,
        customer_name=rental.customer_name,
        email=rental.email,
        amount=rental.total_amount,
        status="pending",
        created_at=utc_now_iso(),
    )


def rent_process(queue_item, store) -> StageResult:
    """
    Process one rent-queue message.

    Args:
        queue_item: Booking message (dict, JSON text or base64 JSON)
        store: Record store; write failures are logged and ignored

    Returns:
        StageResult whose output is the PaymentRequest for the payment queue

    Raises:
        MessageParseError, pydantic.ValidationError: malformed booking message
    """
    logger.info("RentProcess function triggered")

    try:
        booking = BookingRecord.model_validate(decode_message(queue_item))
        logger.info(f"Processing booking: {booking.booking_id}")
        rental = build_rental_record(booking)
    except Exception:
        logger.exception("Error processing rental")
        raise

    saved = run_effect(
        "persist",
        lambda: store.save_rental(rental),
        "Record store not available, continuing without persistence",
    )
    if saved.status == APPLIED:
        logger.info("Rental record saved")

    payment_request = build_payment_request(rental)
    logger.info(f"Payment request queued for booking: {booking.booking_id}")
    logger.info("Rent processing completed successfully")

    return StageResult(record=rental, output=payment_request, effects=[saved])
