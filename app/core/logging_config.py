import logging

from app.core.config import settings


def setup_logging(level: str | None = None) -> None:
    """Configures root logging for the API process.

    Called once from the FastAPI lifespan so every module logger
    (``logging.getLogger(__name__)``) writes to the terminal.
    """
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler()] # This sends it to the Terminal
    )
    # SQL echo is controlled by DATABASE_ECHO, keep the engine logger quiet otherwise
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
