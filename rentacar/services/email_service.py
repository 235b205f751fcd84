"""
Email Service using SendGrid
"""
import json
import logging
from dataclasses import dataclass, asdict

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from rentacar.schemas import PaymentRecord

logger = logging.getLogger(__name__)


@dataclass
class EmailMessage:
    to: str
    sender: str
    subject: str
    text: str
    html: str


def build_confirmation_email(payment: PaymentRecord, sender: str) -> EmailMessage:
    """
    Build the booking confirmation email for a completed payment.

    Args:
        payment: Completed payment record
        sender: From address

    Returns:
        EmailMessage with plain text and HTML bodies
    """
    text = (
        f"Dear {payment.customer_name},\n\n"
        f"Your booking has been confirmed!\n\n"
        f"Booking ID: {payment.booking_id}\n"
        f"Amount Paid: ${payment.amount}\n"
        f"Transaction ID: {payment.transaction_id}\n\n"
        f"Thank you for choosing RentACar!\n\n"
        f"Best regards,\nRentACar Team"
    )
    html = f"""
        <h2>Booking Confirmation</h2>
        <p>Dear {payment.customer_name},</p>
        <p>Your booking has been confirmed!</p>
        <ul>
            <li><strong>Booking ID:</strong> {payment.booking_id}</li>
            <li><strong>Amount Paid:</strong> ${payment.amount}</li>
            <li><strong>Transaction ID:</strong> {payment.transaction_id}</li>
        </ul>
        <p>Thank you for choosing RentACar!</p>
        <p>Best regards,<br>RentACar Team</p>
    """
    return EmailMessage(
        to=payment.email,
        sender=sender,
        subject="Booking Confirmation - RentACar",
        text=text,
        html=html,
    )


class SendGridEmailService:
    """Service to send email using SendGrid"""

    enabled = True

    def __init__(self, api_key: str, client: SendGridAPIClient = None):
        self.client = client or SendGridAPIClient(api_key=api_key)

    def send(self, email: EmailMessage) -> bool:
        """
        Send an email.

        Returns:
            True when SendGrid accepted the message

        Raises:
            RuntimeError: SendGrid answered with a non-2xx status
            Exception: any client/network error from the SendGrid library
        """
        message = Mail(
            from_email=email.sender,
            to_emails=email.to,
            subject=email.subject,
            plain_text_content=email.text,
            html_content=email.html,
        )
        response = self.client.send(message)
        if response.status_code not in (200, 201, 202):
            raise RuntimeError(f"SendGrid rejected email (status {response.status_code})")
        logger.info(f"Email sent successfully to: {email.to}")
        return True


class DisabledEmailService:
    """Used when SendGrid is not configured: email content is only logged"""

    enabled = False

    def send(self, email: EmailMessage) -> bool:
        logger.info(f"Email content (local): {json.dumps(asdict(email), indent=2)}")
        return False
