import logging

from app.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for the API process and the CLI scripts."""
    if logging.getLogger().handlers:
        # Already configured (uvicorn, pytest, or a reload)
        return
    logging.basicConfig(level=(level or settings.LOG_LEVEL), format=LOG_FORMAT)
