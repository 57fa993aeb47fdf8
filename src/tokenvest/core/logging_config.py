"""
JSON log output for the tokenvest CLI.

Records carry the ``extra`` fields passed at the call site plus the
environment, service name and source location. Output goes to a stream
and, when configured, to a size-rotated file.
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pythonjsonlogger import jsonlogger

LOG_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"
ROTATE_BYTES = 10 * 1024 * 1024
ROTATE_BACKUPS = 5


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    def __init__(self, environment: str = "development", service_name: str = "tokenvest"):
        super().__init__(fmt=LOG_FORMAT)
        self.environment = environment
        self.service_name = service_name

    def add_fields(self, log_record, record, message_dict) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.fromtimestamp(record.created, timezone.utc).isoformat()
        log_record["level"] = record.levelname.lower()
        log_record["environment"] = self.environment
        log_record["service"] = self.service_name
        log_record["source"] = {
            "function": record.funcName,
            "module": record.module,
            "line": record.lineno,
        }


def setup_logging(
    name: str = "tokenvest",
    log_file: Optional[str] = None,
    level: str = "INFO",
    environment: str = "development",
    enable_console: bool = True,
    stream=None,
) -> logging.Logger:
    """
    (Re)configure the ``name`` logger; earlier handlers are closed first.

    Args:
        log_file: Rotated JSON log file, if any
        stream: Console stream (defaults to stderr)
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = CustomJsonFormatter(environment=environment, service_name=name.split(".")[0])

    if enable_console:
        console_handler = logging.StreamHandler(stream or sys.stderr)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=ROTATE_BYTES, backupCount=ROTATE_BACKUPS, encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
