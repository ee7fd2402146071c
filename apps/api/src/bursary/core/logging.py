import logging
import sys

from bursary.core.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


def configure_logging(level: str | None = None) -> None:
    """
    Configure logging for the whole app.

    Call this once at startup (the FastAPI lifespan does it). Modules get
    their own loggers through ``logging.getLogger(__name__)``.
    """
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    # SQL echo is too noisy outside local debugging
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
