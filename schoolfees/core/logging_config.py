import logging

from schoolfees.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging() -> None:
    """Configure root logging once at application start."""
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)
