"""Logging setup: JSON lines in production, plain text elsewhere."""
import logging
import sys
from pythonjsonlogger import jsonlogger
from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def setup_logging() -> None:
    """Configure root logging from LOG_LEVEL / LOG_JSON (JSON is forced in production)."""
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    if settings.LOG_JSON or settings.APP_ENV == "production":
        handler.setFormatter(
            jsonlogger.JsonFormatter(
                LOG_FORMAT,
                rename_fields={"asctime": "timestamp", "levelname": "level"},
            )
        )
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logging.root.handlers = [handler]
    logging.root.setLevel(level)
    # uvicorn installs its own handlers; route them through ours
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers = []
        logging.getLogger(name).propagate = True
