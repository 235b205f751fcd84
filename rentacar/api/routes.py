import logging
import uuid

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from rentacar.config import settings
from rentacar.schemas import BookingRequest, BookingRecord, utc_now_iso
from rentacar.services.dependencies import get_queue_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

# Assigned by intake; a client-sent value is overwritten
BOOKING_INTAKE_FIELDS = ("bookingId", "status", "createdAt")
PAYMENT_INTAKE_FIELDS = ("paymentId", "status", "createdAt")


@router.get("/health")
def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "timestamp": utc_now_iso(),
    }


@router.post("/bookings")
async def create_booking(request: Request, queue=Depends(get_queue_client)):
    """
    Accept a booking and hand it to the rent queue.

    - Assign bookingId, status "pending" and createdAt
    - Send to rent-queue, or log a simulation when no transport is configured
    - Acknowledge with 201 without waiting for the pipeline
    """
    try:
        body = await request.json()
        booking_request = BookingRequest.model_validate(body).with_quote()

        booking_id = str(uuid.uuid4())
        data = {
            key: value
            for key, value in booking_request.to_message().items()
            if key not in BOOKING_INTAKE_FIELDS
        }
        booking = BookingRecord.model_validate(
            {**data, "bookingId": booking_id, "status": "pending", "createdAt": utc_now_iso()}
        )

        logger.info(f"New booking received: {booking_id}")
        await run_in_threadpool(queue.send_message, settings.rent_queue_name, booking.to_message())
        if queue.enabled:
            logger.info(f"Booking sent to {settings.rent_queue_name}")

        return JSONResponse(
            status_code=201,
            content={
                "success": True,
                "bookingId": booking_id,
                "message": "Booking created successfully",
                "status": "processing",
            },
        )

    except Exception as e:
        logger.error(f"Error creating booking: {str(e)}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Failed to create booking"},
        )


@router.get("/bookings/{booking_id}")
def get_booking(booking_id: str):
    """Booking status. There is no lookup; bookings always report processing."""
    return {
        "bookingId": booking_id,
        "status": "processing",
        "message": "Booking is being processed",
    }


@router.post("/payments")
async def create_payment(request: Request, queue=Depends(get_queue_client)):
    """Hand an arbitrary payment payload to the payment queue"""
    try:
        body = await request.json()
        if not isinstance(body, dict):
            raise ValueError("Payment payload must be a JSON object")

        payment_id = str(uuid.uuid4())
        payment = {
            "paymentId": payment_id,
            **{key: value for key, value in body.items() if key not in PAYMENT_INTAKE_FIELDS},
            "status": "pending",
            "createdAt": utc_now_iso(),
        }

        logger.info(f"Payment initiated: {payment_id}")
        await run_in_threadpool(queue.send_message, settings.payment_queue_name, payment)
        if queue.enabled:
            logger.info(f"Payment sent to {settings.payment_queue_name}")

        return JSONResponse(
            status_code=201,
            content={
                "success": True,
                "paymentId": payment_id,
                "message": "Payment processing initiated",
            },
        )

    except Exception as e:
        logger.error(f"Error processing payment: {str(e)}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Failed to process payment"},
        )
