import logging
import os
from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application configuration from environment variables"""

    # App
    app_name: str = "rentacar-bff"
    debug: bool = os.getenv("DEBUG", "False").lower() == "true"
    port: int = int(os.getenv("PORT", "3000"))

    # Durable store (empty = log records only)
    database_url: str = os.getenv("DATABASE_URL", "")

    # Pipeline transport (empty = local simulation)
    queue_url: str = os.getenv("QUEUE_URL", "")
    rent_queue_name: str = "rent-queue"
    payment_queue_name: str = "payment-queue"
    notification_queue_name: str = "notification-queue"

    # Function host
    queue_poll_interval: float = 2.0
    queue_batch_size: int = 16
    max_dequeue_count: int = 5
    run_functions_in_process: bool = False

    # SendGrid
    sendgrid_api_key: str = os.getenv("SENDGRID_API_KEY", "")
    notification_email: str = os.getenv("NOTIFICATION_EMAIL", "notifications@rentacar.com")

    # Health probe targets
    azure_webapp_name_frontend: str = ""
    azure_webapp_name_bff: str = ""
    webapp_domain: str = "azurewebsites.net"

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()


def configure_logging(debug: bool = None):
    """Configure root logging for a process entry point"""
    if debug is None:
        debug = settings.debug
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
