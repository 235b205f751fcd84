"""
Payment stage: payment request -> completed payment -> confirmation notification
"""
import logging
import time

from rentacar.functions.results import StageResult, run_effect, APPLIED
from rentacar.schemas import PaymentRequest, PaymentRecord, NotificationRecord, utc_now_iso
from rentacar.services.email_service import build_confirmation_email
from rentacar.services.queue_service import decode_message

logger = logging.getLogger(__name__)


def new_transaction_id() -> str:
    # Millisecond clock; two payments in the same millisecond collide
    return f"TXN-{int(time.time() * 1000)}"


def build_payment_record(request: PaymentRequest) -> PaymentRecord:
    """Charge the payment. The gateway is assumed to always succeed."""
    return PaymentRecord(
        id=f"payment-{request.booking_id}",
        booking_id=request.booking_id,
        customer_name=request.customer_name,
        email=request.email,
        amount=request.amount,
        status="completed",
        payment_method="credit_card",
        transaction_id=new_transaction_id(),
        processed_at=utc_now_iso(),
    )


def build_notification(request: PaymentRequest) -> NotificationRecord:
    return NotificationRecord(
        booking_id=request.booking_id,
        email=request.email,
        type="booking_confirmation",
        status="sent",
        sent_at=utc_now_iso(),
    )


def payment_process(queue_item, store, mailer, sender: str) -> StageResult:
    """
    Process one payment-queue message.

    Args:
        queue_item: Payment request message (dict, JSON text or base64 JSON)
        store: Record store; write failures are logged and ignored
        mailer: Email service; send failures are logged and ignored
        sender: From address of the confirmation email

    Returns:
        StageResult whose output is the NotificationRecord, emitted
        whether or not the email went out

    Raises:
        MessageParseError, pydantic.ValidationError: malformed payment message
    """
    logger.info("PaymentProcess function triggered")

    try:
        request = PaymentRequest.model_validate(decode_message(queue_item))
        logger.info(f"Processing payment for booking: {request.booking_id}")
        payment = build_payment_record(request)
        email = build_confirmation_email(payment, sender)
    except Exception:
        logger.exception("Error processing payment")
        raise

    saved = run_effect(
        "persist",
        lambda: store.save_payment(payment),
        "Record store not available, continuing without persistence",
    )
    if saved.status == APPLIED:
        logger.info("Payment record saved")

    emailed = run_effect(
        "email",
        lambda: mailer.send(email),
        "Email service failed, email not sent",
    )

    notification = build_notification(request)
    logger.info(f"Notification queued for booking: {request.booking_id}")
    logger.info("Payment processing completed successfully")

    return StageResult(record=payment, output=notification, effects=[saved, emailed])
