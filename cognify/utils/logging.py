"""
Logging utilities for the practice studio.

Everything goes to a log file in the work directory. The terminal belongs to
the interview screens, so only CRITICAL records reach the console.
"""
import os
import logging

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s - %(message)s'

# The google client libraries are chatty at DEBUG
NOISY_LOGGERS = ("urllib3", "google_genai", "websockets")

_HANDLER_MARK = "_cognify_handler"


def _resolve_level(level) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def _mark(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_MARK, True)
    return handler


def setup_logging(log_file_path: str, level="DEBUG") -> str:
    """
    Route logging to ``log_file_path`` and keep the console quiet.

    Calling it again replaces the handlers installed by the previous call
    and leaves any others (a test runner's, for instance) in place.

    Raises:
        ValueError: ``level`` is not a logging level name or number
    """
    file_level = _resolve_level(level)

    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    root = logging.getLogger()
    for handler in [h for h in root.handlers if getattr(h, _HANDLER_MARK, False)]:
        root.removeHandler(handler)
        handler.close()

    file_handler = _mark(logging.FileHandler(log_file_path, mode='a', encoding='utf-8'))
    file_handler.setLevel(file_level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    console_handler = _mark(logging.StreamHandler())
    console_handler.setLevel(logging.CRITICAL)
    console_handler.setFormatter(logging.Formatter('%(message)s'))

    root.setLevel(logging.DEBUG)
    root.addHandler(file_handler)
    root.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file_path
