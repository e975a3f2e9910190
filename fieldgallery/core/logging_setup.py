# fieldgallery/core/logging_setup.py
# Console + optional rotating file logging for the "fieldgallery" logger tree.

from __future__ import annotations
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
import json
import logging
import logging.handlers

LOGGER_NAME = "fieldgallery"


class EnsureContext(logging.Filter):
    """Default the context fields the formatters reference."""
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "project_id"): record.project_id = "-"
        if not hasattr(record, "op"):         record.op = "-"
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "msg": record.getMessage(),
            "name": record.name,
            "project_id": getattr(record, "project_id", None),
            "op": getattr(record, "op", None),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def gallery_logger(project_id: Optional[int]) -> logging.LoggerAdapter:
    """Attach project_id to every log record emitted for one gallery."""
    return logging.LoggerAdapter(
        logging.getLogger(f"{LOGGER_NAME}.gallery"),
        {"project_id": project_id if project_id is not None else "-"},
    )


def setup_logging(level: Optional[str] = None, logs_dir: Optional[Path] = None,
                  json_logs: bool = False, verbose: int = 0, quiet: bool = False) -> logging.Logger:
    """
    Console/File matrix:
      - level=X:    both console & file use X
      - quiet:      console = silent;  file = INFO
      - verbose 1+: console = DEBUG;   file = DEBUG
      - none:       console = INFO;    file = INFO
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    for h in list(logger.handlers): logger.removeHandler(h)

    if level:
        console_level = getattr(logging, level.upper())
        file_level    = console_level
    elif quiet:
        console_level = logging.CRITICAL + 1   # prints nothing
        file_level    = logging.INFO
    elif verbose:
        console_level = logging.DEBUG
        file_level    = logging.DEBUG
    else:
        console_level = logging.INFO
        file_level    = logging.INFO

    ch = logging.StreamHandler()
    ch.setLevel(console_level)
    ch.addFilter(EnsureContext())
    ch.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(ch)

    if logs_dir:
        logs_dir = Path(logs_dir)
        logs_dir.mkdir(parents=True, exist_ok=True)
        log_path = logs_dir / "fieldgallery.log"
        fh = logging.handlers.TimedRotatingFileHandler(
            log_path, when="midnight", backupCount=14, encoding="utf-8"
        )
        fh.setLevel(file_level)
        fh.addFilter(EnsureContext())
        if json_logs:
            fh.setFormatter(JsonFormatter())
        else:
            fh.setFormatter(logging.Formatter(
                "%(asctime)s [%(levelname)s] [%(project_id)s:%(op)s] %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            ))
        logger.addHandler(fh)
        logger.debug(f"Log file: {log_path}")

    return logger
