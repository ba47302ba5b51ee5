import logging
import sys

from pythonjsonlogger import jsonlogger

from tubely.core.config import settings


def setup_logging() -> logging.Logger:
    """
    Configure les logs JSON structurés de l'application.

    Un seul handler stdout partagé par le root logger et les loggers Uvicorn,
    pour que tout sorte au même format. Les modules utilisent ensuite
    `logging.getLogger(__name__)` et passent leur contexte via `extra={...}`.
    """
    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s"
    )
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.LOG_LEVEL)
    root_logger.handlers = []
    root_logger.addHandler(stream_handler)

    for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error"]:
        u_logger = logging.getLogger(logger_name)
        u_logger.setLevel(settings.LOG_LEVEL)
        u_logger.handlers = []
        u_logger.addHandler(stream_handler)
        u_logger.propagate = False

    return root_logger
