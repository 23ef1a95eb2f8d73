"""Logging configuration for fermi_tool.

Console output is plain ``LEVEL: message`` by default. Structured mode
emits one JSON object per record, carrying the run context set by
``LoggingContext`` (run id, component, operation, variable) and, with
``enable_performance``, the seconds elapsed since logging was set up.
"""

import functools
import json
import logging
import logging.config
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional


CONTEXT_FIELDS = ('run_id', 'component', 'operation', 'variable')
PACKAGE_LOGGER = 'fermi_tool'


class PerformanceFilter(logging.Filter):
    """Stamps each record with a monotonic clock reading."""

    def filter(self, record):
        if not hasattr(record, 'performance_time'):
            record.performance_time = time.perf_counter()
        return True


class FermiFormatter(logging.Formatter):
    """Formatter emitting one JSON object per record."""

    def __init__(self, include_performance: bool = True):
        super().__init__()
        self.include_performance = include_performance
        self.start_time = time.perf_counter()

    def format(self, record):
        message: Dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        if self.include_performance and hasattr(record, 'performance_time'):
            message['elapsed'] = round(record.performance_time - self.start_time, 3)

        message.update(
            (field, getattr(record, field)) for field in CONTEXT_FIELDS if hasattr(record, field)
        )

        if record.exc_info:
            message['exception'] = self.formatException(record.exc_info)

        return json.dumps(message, default=str)


def _handler(formatter: str, log_level: str, enable_performance: bool, **options) -> Dict[str, Any]:
    handler = {'formatter': formatter, 'level': log_level, **options}
    if enable_performance:
        handler['filters'] = ['performance']
    return handler


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    enable_performance: bool = True,
    enable_structured: bool = False
) -> logging.Logger:
    """Configure the ``fermi_tool`` logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file for a rotating log; its directory is created
        enable_performance: Add elapsed seconds to structured records
        enable_structured: JSON records instead of plain text

    Returns:
        Configured package logger
    """
    log_level = log_level.upper()
    handlers = {
        'console': _handler(
            'structured' if enable_structured else 'simple', log_level, enable_performance,
            **{'class': 'logging.StreamHandler', 'stream': sys.stderr}
        ),
    }

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers['file'] = _handler(
            'structured' if enable_structured else 'detailed', log_level, enable_performance,
            **{
                'class': 'logging.handlers.RotatingFileHandler',
                'filename': str(log_file),
                'maxBytes': 10 * 1024 * 1024,
                'backupCount': 5,
                'encoding': 'utf-8',
            }
        )

    logging.config.dictConfig({
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'simple': {'format': '%(levelname)s: %(message)s'},
            'detailed': {'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s'},
            'structured': {'()': FermiFormatter, 'include_performance': enable_performance},
        },
        'filters': {'performance': {'()': PerformanceFilter}},
        'handlers': handlers,
        'loggers': {
            PACKAGE_LOGGER: {'level': log_level, 'handlers': list(handlers), 'propagate': False},
        },
    })

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.debug("Logging initialized", extra={'component': 'logging'})
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger below the ``fermi_tool`` hierarchy for ``name`` (usually ``__name__``)."""
    if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + '.'):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")


class LoggingContext:
    """Attach context fields (run id, variable, ...) to every record logged inside the block."""

    def __init__(self, logger: logging.Logger, **context):
        self.logger = logger
        self.context = context
        self.old_factory = logging.getLogRecordFactory()

    def __enter__(self):
        old_factory = self.old_factory
        context = self.context

        def record_factory(*args, **kwargs):
            record = old_factory(*args, **kwargs)
            for key, value in context.items():
                setattr(record, key, value)
            return record

        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        logging.setLogRecordFactory(self.old_factory)


def log_performance(func):
    """Log start, completion time and failures of ``func``."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        start_time = time.perf_counter()

        with LoggingContext(logger, component=func.__module__, operation=func.__name__):
            logger.debug(f"Starting {func.__name__}")
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(f"Failed {func.__name__} after {time.perf_counter() - start_time:.3f}s: {e}")
                raise
            logger.info(f"Completed {func.__name__} in {time.perf_counter() - start_time:.3f}s")
            return result

    return wrapper
