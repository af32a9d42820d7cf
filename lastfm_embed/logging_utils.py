"""
Logging utilities for the Last.fm embed service.

The API entrypoint calls configure_logging() once at startup.
"""
import logging
import sys
import os
import re
import time
from pathlib import Path
from contextlib import contextmanager
from typing import Optional, Any, List

# Track whether logging has been configured
_logging_configured = False
_HANDLER_TAG = "_embed_handler"
_CONSOLE_FMT = '%(asctime)s | %(levelname)-5s | %(name)s | %(message)s'
_FILE_FMT = '%(asctime)s | %(levelname)-5s | %(name)s | %(funcName)s:%(lineno)d | %(message)s'

_REDACTED = '***REDACTED***'


def _build_formatter(fmt: str, datefmt: Optional[str] = None) -> logging.Formatter:
    return logging.Formatter(fmt, datefmt=datefmt)


def configure_logging(
    level: str = 'INFO',
    log_file: Optional[str] = None,
    file_level: str = 'DEBUG',
    force: bool = False,
    console: bool = True,
) -> None:
    """
    Configure logging for the entire application.

    Subsequent calls are ignored unless force=True.

    Args:
        level: Console log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path to log file
        file_level: Log level for file output (default DEBUG)
        force: If True, reconfigure even if already configured
        console: Whether to add a console handler

    Environment variable overrides:
        LOG_LEVEL: Override the level parameter
        LOG_FILE: Override the log_file parameter
    """
    global _logging_configured

    if _logging_configured and not force:
        return

    level = os.getenv('LOG_LEVEL', level).upper()
    if log_file is None:
        log_file = os.getenv('LOG_FILE')

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)  # Capture all, filter at handler level

    # Remove handlers we previously installed (tagged)
    for handler in root.handlers[:]:
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, level, logging.INFO))
        console_handler.setFormatter(_build_formatter(_CONSOLE_FMT, datefmt='%H:%M:%S'))
        setattr(console_handler, _HANDLER_TAG, True)
        root.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(getattr(logging, file_level.upper(), logging.DEBUG))
        file_handler.setFormatter(_build_formatter(_FILE_FMT, datefmt='%Y-%m-%d %H:%M:%S'))
        setattr(file_handler, _HANDLER_TAG, True)
        root.addHandler(file_handler)

    # Quiet noisy third-party loggers
    for noisy in ['urllib3', 'requests', 'httpx']:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    _logging_configured = True

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging configured: level={level}, file={log_file or 'none'}")


@contextmanager
def stage_timer(stage_name: str, logger: Optional[logging.Logger] = None):
    """
    Context manager for timing request stages.

    Logs stage start at DEBUG, completion with timing at INFO.

    Usage:
        with stage_timer("Top tracks fetch", logger):
            tracks = client.get_top_tracks(user, limit, period)
        # Logs: "Top tracks fetch completed in 230ms"
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    logger.debug(f"{stage_name} starting...")
    start = time.perf_counter()

    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        if elapsed < 1:
            logger.info(f"{stage_name} completed in {elapsed*1000:.0f}ms")
        else:
            logger.info(f"{stage_name} completed in {elapsed:.1f}s")


def redact(
    value: Any,
    keys: Optional[List[str]] = None,
    patterns: Optional[List[str]] = None,
) -> str:
    """
    Redact sensitive information from a value before logging.

    Args:
        value: Value to redact (string, URL, path, or dict)
        keys: Dict keys to redact (for dict values)
        patterns: Additional regex patterns to redact

    Returns:
        Redacted string representation

    Usage:
        logger.debug(f"GET {redact(url)}")
        logger.debug(f"Params: {redact(params, keys=['api_key'])}")
    """
    if value is None:
        return "None"

    if isinstance(value, Path):
        value = str(value)

    text = str(value)

    default_patterns = [
        # API keys and tokens, including query string form (api_key=...&)
        (r'(["\']?(?:api[_-]?key|token|secret|password|auth)["\']?\s*[:=]\s*["\']?)([^"\'\s&,}]+)(["\']?)',
         rf'\1{_REDACTED}\3'),
        # User home directories (Windows and Unix)
        (r'C:\\Users\\[^\\]+', r'C:\\Users\\***'),
        (r'/home/[^/]+', r'/home/***'),
        (r'/Users/[^/]+', r'/Users/***'),
    ]

    for pattern, replacement in default_patterns:
        text = re.sub(pattern, replacement, text, flags=re.IGNORECASE)

    if patterns:
        for pattern in patterns:
            text = re.sub(pattern, _REDACTED, text)

    if keys:
        for key in keys:
            text = re.sub(
                rf'(["\']?{re.escape(key)}["\']?\s*[:=]\s*["\']?)([^"\'\s,&}}]+)(["\']?)',
                rf'\1{_REDACTED}\3',
                text,
                flags=re.IGNORECASE
            )

    return text
