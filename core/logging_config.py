"""
Logging setup for the panel relay client.

Console output is colored during development and switches to one JSON
object per line when structured logging is on. File logs rotate, with
errors duplicated into their own file.
"""

import logging
import logging.handlers
import sys
import json
from pathlib import Path
from typing import Optional, Dict, Any, List
from datetime import datetime, timezone

# Library loggers that are only interesting when something goes wrong
QUIET_LOGGERS = ("websockets", "aiohttp", "asyncio")

FILE_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"


def _context(record: logging.LogRecord) -> Dict[str, Any]:
    return getattr(record, "extra_data", None) or {}


class StructuredFormatter(logging.Formatter):
    """One JSON object per record"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        context = _context(record)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """Short colored lines: time, level, logger, message, key=value context"""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[92m",
        "WARNING": "\033[93m",
        "ERROR": "\033[91m",
        "CRITICAL": "\033[95m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{stamp} {color}{record.levelname:<7}{self.RESET} {record.name}: {record.getMessage()}"

        context = _context(record)
        if context:
            line += " " + " ".join(f"{key}={value}" for key, value in context.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _file_handlers(log_dir: Path, level: int, max_bytes: int, backup_count: int,
                   formatter: logging.Formatter) -> List[logging.Handler]:
    handlers = []
    for filename, handler_level in (("panel_relay.log", level), ("errors.log", logging.ERROR)):
        handler = logging.handlers.RotatingFileHandler(
            log_dir / filename, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
        handler.setLevel(handler_level)
        handler.setFormatter(formatter)
        handlers.append(handler)
    return handlers


def setup_logging(config: Dict[str, Any]) -> None:
    """
    Configure the root logger from LOGGING_CONFIG.

    Replaces any handlers already installed on the root logger.
    """
    level = logging.getLevelName(str(config.get("log_level", "INFO")).upper())
    structured = config.get("structured_logging", False)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)

    if config.get("enable_console_logging", True):
        console = logging.StreamHandler(sys.stdout)
        console.setLevel(level)
        console.setFormatter(StructuredFormatter() if structured else ColoredConsoleFormatter())
        root.addHandler(console)

    log_dir: Optional[Path] = None
    if config.get("enable_file_logging", True):
        log_dir = Path(config.get("log_dir", "./logs"))
        log_dir.mkdir(parents=True, exist_ok=True)
        formatter = StructuredFormatter() if structured else logging.Formatter(FILE_FORMAT, "%Y-%m-%d %H:%M:%S")
        for handler in _file_handlers(log_dir, level,
                                      config.get("max_log_size_mb", 10) * 1024 * 1024,
                                      config.get("backup_count", 5), formatter):
            root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    log_with_context(logging.getLogger(__name__), logging.INFO, "Logging configured",
                     level=logging.getLevelName(level), structured=structured,
                     log_dir=str(log_dir) if log_dir else None)


def get_logger(name: str) -> logging.Logger:
    """Loggers are never configured implicitly; main() calls setup_logging()"""
    return logging.getLogger(name)


def log_with_context(logger: logging.Logger, level: int, message: str, **context) -> None:
    """Log a message with key/value context rendered by both formatters"""
    logger.log(level, message, extra={"extra_data": context})


def log_error_with_context(logger: logging.Logger, error: Exception,
                           operation: str, **context) -> None:
    log_with_context(logger, logging.ERROR, f"Error in {operation}: {error}",
                     operation=operation, error_type=type(error).__name__, **context)
