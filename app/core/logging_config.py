"""
Logging configuration — a single stdout handler for the API and workers.

Webhook outcomes are logged, not printed; the container captures stdout.
"""
import logging
import sys

from app.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Third-party loggers that would otherwise echo every request or query
NOISY_LOGGERS = ("httpcore", "httpx", "urllib3", "asyncio", "sqlalchemy.engine", "celery")


def setup_logging() -> None:
    """Configure the root logger at settings.LOG_LEVEL."""
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)

    # Reloads and workers call this again
    if not root.handlers:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(console)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
