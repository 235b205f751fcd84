"""
Post-deploy smoke test for the frontend site and the BFF health endpoint.

Exit codes: 0 healthy, 1 a target stayed unhealthy, 2 targets not configured.
"""
import logging
import sys
import time

import requests

from rentacar.config import settings, configure_logging

logger = logging.getLogger(__name__)

EXIT_HEALTHY = 0
EXIT_UNHEALTHY = 1
EXIT_MISCONFIGURED = 2


def check_url(
    url: str,
    retries: int = 6,
    delay: float = 5.0,
    timeout: float = 5.0,
    http=requests,
    sleep=time.sleep,
) -> bool:
    """
    Poll a URL until it answers with a status in [200, 400).

    Args:
        url: Target URL
        retries: Maximum attempts
        delay: Seconds between attempts
        timeout: Per-request timeout in seconds
        http: Object with a requests-style ``get``
        sleep: Delay function

    Returns:
        True if an attempt succeeded
    """
    for attempt in range(1, retries + 1):
        try:
            response = http.get(url, timeout=timeout)
            if 200 <= response.status_code < 400:
                return True
            logger.info(f"Check {url} returned status {response.status_code}")
        except requests.RequestException as e:
            logger.info(f"Attempt {attempt} failed for {url}: {e}")
        if attempt < retries:
            sleep(delay)
    return False


def main(frontend_name: str = None, bff_name: str = None, domain: str = None, **check_kwargs) -> int:
    configure_logging()
    frontend_name = frontend_name if frontend_name is not None else settings.azure_webapp_name_frontend
    bff_name = bff_name if bff_name is not None else settings.azure_webapp_name_bff
    domain = domain or settings.webapp_domain

    if not frontend_name or not bff_name:
        logger.error("Missing AZURE_WEBAPP_NAME_FRONTEND or AZURE_WEBAPP_NAME_BFF environment variables")
        return EXIT_MISCONFIGURED

    frontend_url = f"https://{frontend_name}.{domain}/"
    bff_url = f"https://{bff_name}.{domain}/api/health"

    logger.info(f"Checking frontend: {frontend_url}")
    frontend_ok = check_url(frontend_url, **check_kwargs)

    logger.info(f"Checking BFF service: {bff_url}")
    bff_ok = check_url(bff_url, **check_kwargs)

    if frontend_ok and bff_ok:
        logger.info("All services healthy")
        return EXIT_HEALTHY

    logger.error("Health check failed")
    if not frontend_ok:
        logger.error("Frontend failed")
    if not bff_ok:
        logger.error("BFF failed")
    return EXIT_UNHEALTHY


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
