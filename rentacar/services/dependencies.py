"""
Process-wide clients for the store, the queues and email.

Each is built once on first use from settings, choosing the live or the
disabled variant, and reused for the life of the process.
"""
import logging

from rentacar.config import settings
from rentacar.services.email_service import SendGridEmailService, DisabledEmailService
from rentacar.services.queue_service import RedisQueueClient, DisabledQueueClient
from rentacar.services.store import SqlRecordStore, DisabledRecordStore

logger = logging.getLogger(__name__)

# Global instances
_record_store = None
_queue_client = None
_email_service = None


def build_record_store(database_url: str):
    if not database_url:
        logger.info("DATABASE_URL not set - records will be logged only")
        return DisabledRecordStore()
    try:
        return SqlRecordStore.from_url(database_url)
    except Exception as e:
        logger.warning(f"Running without record store: {e}")
        return DisabledRecordStore()


def build_queue_client(queue_url: str):
    if not queue_url:
        logger.info("QUEUE_URL not set - running without queue transport")
        return DisabledQueueClient()
    try:
        client = RedisQueueClient.from_url(queue_url)
    except Exception as e:
        logger.warning(f"Running without queue transport: {e}")
        return DisabledQueueClient()
    logger.info("Queue client initialized")
    return client


def build_email_service(api_key: str):
    if not api_key:
        logger.info("SENDGRID_API_KEY not set - emails will be logged only")
        return DisabledEmailService()
    return SendGridEmailService(api_key)


def get_record_store():
    """Get or create record store instance"""
    global _record_store
    if _record_store is None:
        _record_store = build_record_store(settings.database_url)
    return _record_store


def get_queue_client():
    """Get or create queue client instance"""
    global _queue_client
    if _queue_client is None:
        _queue_client = build_queue_client(settings.queue_url)
    return _queue_client


def get_email_service():
    """Get or create email service instance"""
    global _email_service
    if _email_service is None:
        _email_service = build_email_service(settings.sendgrid_api_key)
    return _email_service
