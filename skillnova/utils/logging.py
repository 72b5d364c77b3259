"""
Logging setup for interview runs.

Everything goes to one append-only log file so consecutive interviews can be
compared; the terminal stays reserved for the interview itself.
"""
import os
import logging
from datetime import datetime

from ..interview.errors import ConfigurationError

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s - %(message)s'

# HTTP and websocket clients log every request at DEBUG/INFO
NOISY_LOGGERS = ("urllib3", "websockets", "httpx", "httpcore", "elevenlabs", "google.auth")


def resolve_level(level) -> int:
    """
    Map a level name ("debug", "INFO", ...) or number to a logging level.

    Raises:
        ConfigurationError: If the name is not a standard logging level
    """
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        raise ConfigurationError(f"Unknown LOG_LEVEL '{level}'")
    return resolved


def setup_logging(log_file_path: str, level: str = "INFO") -> str:
    """
    Route all interview logging to ``log_file_path``.

    Args:
        log_file_path: Log file; its directory is created if needed
        level: Threshold for the file (name or number)

    Returns:
        Path to the log file
    """
    file_level = resolve_level(level)

    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    file_handler = logging.FileHandler(log_file_path, mode='a', encoding='utf-8')
    file_handler.setLevel(file_level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    # Terminal only hears about things that stop the program
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.CRITICAL)
    console_handler.setFormatter(logging.Formatter('%(message)s'))

    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(file_level, logging.WARNING))

    logging.getLogger("skillnova").info(
        "==== run started %s (level %s) ====",
        datetime.now().isoformat(timespec="seconds"), logging.getLevelName(file_level),
    )
    return log_file_path
