"""Application logging.

Importing this package configures structlog and the stdlib handlers once.
"""

from app.core.services.log.providers.structlog.setup import LOG_DIR, logger


def get_log_service():
    """Get the root application logger."""
    return logger


__all__ = ['LOG_DIR', 'get_log_service']
