"""Application configuration

Settings are read from the environment once at import time.
"""
import logging
import os
from decimal import Decimal

CURRENCY = os.getenv("GITE_CURRENCY", "EUR")

# Upper bound for waiting on a booking lock before the attempt is treated as a fault
LOCK_TIMEOUT_SECONDS = float(os.getenv("GITE_LOCK_TIMEOUT_SECONDS", "5"))

LOG_LEVEL = os.getenv("GITE_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv(
    "GITE_LOG_FORMAT",
    "%(asctime)s %(levelname)s [%(name)s] %(message)s"
)

SEED_DEMO_DATA = os.getenv("GITE_SEED_DEMO_DATA", "true").lower() in ("1", "true", "yes")

API_TITLE = os.getenv("GITE_API_TITLE", "Gite Booking API")

MONEY_QUANTUM = Decimal("0.01")


def configure_logging() -> None:
    """Apply the configured level and format to the root logger"""
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
