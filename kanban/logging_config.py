import logging
import logging.config
import sys
import time
import uuid
from typing import Any, Dict, Optional

import structlog

# Processors shared by structlog loggers and by the stdlib file formatter
SHARED_PROCESSORS = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def _handlers(log_level: str, log_file: Optional[str]) -> Dict[str, Dict[str, Any]]:
    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": log_level,
            "formatter": "plain",
            "stream": sys.stdout,
        }
    }
    if log_file:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": log_level,
            "formatter": "json",
            "filename": log_file,
            "maxBytes": LOG_FILE_MAX_BYTES,
            "backupCount": LOG_FILE_BACKUPS,
        }
    return handlers


def configure_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """
    Route structlog events through stdlib logging.

    Console output is one line per event; with ``log_file`` set, events are
    also written as JSON to a rotating file.
    """
    log_level = log_level.upper()

    structlog.configure(
        processors=[structlog.stdlib.filter_by_level, *SHARED_PROCESSORS, structlog.processors.JSONRenderer()],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handlers = _handlers(log_level, log_file)
    logger_config = {"level": log_level, "handlers": list(handlers), "propagate": False}

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
            "json": {
                "()": "structlog.stdlib.ProcessorFormatter",
                "processor": structlog.processors.JSONRenderer(),
                "foreign_pre_chain": SHARED_PROCESSORS,
            },
        },
        "handlers": handlers,
        "loggers": {
            "": dict(logger_config),
            "kanban": dict(logger_config),
        },
    })

    logger = structlog.get_logger("kanban")
    logger.info("Logging configured", level=log_level, file=log_file)
    return logger


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)


class ReorderContext:
    """
    Wrap one reorder request: every event logged through ``self.logger``
    carries the collection, the dragged document and a short operation id.
    """

    def __init__(self, collection: str, document_id: Optional[str] = None,
                 operation_id: Optional[str] = None):
        self.operation_id = operation_id or uuid.uuid4().hex[:8]
        self.logger = get_logger("kanban.reorder").bind(
            collection=collection,
            document_id=document_id,
            operation_id=self.operation_id,
        )
        self._started = None

    def __enter__(self):
        self._started = time.perf_counter()
        self.logger.info("Reorder started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = round(time.perf_counter() - self._started, 4)
        if exc_type is None:
            self.logger.info("Reorder completed", duration_seconds=duration)
        else:
            self.logger.error(
                "Reorder failed",
                duration_seconds=duration,
                error_type=exc_type.__name__,
                error_message=str(exc_val),
            )
        return False


def log_rank_assignment(collection: str, **fields):
    get_logger("kanban.rank").info("Initial rank assigned", collection=collection, **fields)
