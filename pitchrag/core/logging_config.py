import logging
import sys
from typing import List, Optional, TextIO

import structlog
from structlog.typing import Processor

from pitchrag.core.config import settings

HANDLER_NAME = "pitchrag-json"

# Third-party logger levels, independent of LOG_LEVEL
LIBRARY_LOG_LEVELS = {
    "uvicorn": logging.WARNING,
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "openai": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "fitz": logging.WARNING,
    "celery": logging.INFO,
}


def _shared_processors(level: str) -> List[Processor]:
    processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if level == "DEBUG":
        processors.append(structlog.processors.CallsiteParameterAdder(
            {
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
            }
        ))
    return processors


def setup_logging(level: Optional[str] = None, stream: Optional[TextIO] = None) -> logging.Handler:
    """
    Routes structlog and stdlib logging through one JSON handler on the root logger.

    Safe to call more than once (API startup and every Celery worker process
    call it): the previously installed handler is swapped out, never stacked.
    Returns the installed handler.
    """
    level = level or settings.LOG_LEVEL
    shared = _shared_processors(level)

    structlog.configure(
        processors=shared + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(),
        ],
    ))

    root_logger = logging.getLogger()
    for existing in [h for h in root_logger.handlers if h.get_name() == HANDLER_NAME]:
        root_logger.removeHandler(existing)
        existing.close()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name, library_level in LIBRARY_LOG_LEVELS.items():
        logging.getLogger(name).setLevel(library_level)

    structlog.get_logger(settings.PROJECT_NAME).info("Logging configured", log_level=level)
    return handler
