import os
import sys
import json
import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

from .config import Settings

_settings = Settings.from_env()

# Configure logging
logger = logging.getLogger("aninegus_app")
logger.setLevel(logging.INFO)

# Determine log file path
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
LOG_DIR = _settings.log_dir or os.path.join(BASE_DIR, 'instance')
os.makedirs(LOG_DIR, exist_ok=True)
LOG_FILE = os.path.join(LOG_DIR, 'aninegus.log')

if not any(getattr(h, "baseFilename", None) == LOG_FILE for h in logger.handlers):
    # File Handler
    file_handler = RotatingFileHandler(LOG_FILE, maxBytes=10*1024*1024, backupCount=5)
    file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    logger.addHandler(file_handler)

    # Stream Handler (stdout)
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(logging.Formatter('%(message)s'))  # Keep stdout clean
    logger.addHandler(stream_handler)

# Debug event log (JSON lines, local-only file)
DEBUG_LOGGING = _settings.debug_logging
DEBUG_LOG_FILE = os.path.join(LOG_DIR, 'debug.log')

debug_logger = logging.getLogger("aninegus_app.debug")
debug_logger.setLevel(logging.INFO)
debug_logger.propagate = False
if not any(getattr(h, "baseFilename", None) == DEBUG_LOG_FILE for h in debug_logger.handlers):
    debug_handler = RotatingFileHandler(DEBUG_LOG_FILE, maxBytes=10 * 1024 * 1024, backupCount=10)
    debug_handler.setFormatter(logging.Formatter('%(message)s'))
    debug_logger.addHandler(debug_handler)
if not DEBUG_LOGGING:
    debug_logger.disabled = True


def log(msg: str, stream: Optional[str] = None) -> None:
    """Log a message to console and file, prefixed with the stream key."""
    prefix = f"[{stream}] " if stream else ""
    logger.info(f"{prefix}{msg}")


def debug_log_event(event: dict) -> None:
    """Write structured debug events to a local file."""
    if debug_logger.disabled:
        return
    try:
        debug_logger.info(json.dumps(event, ensure_ascii=True, separators=(',', ':')))
    except (TypeError, ValueError) as exc:
        logger.info(f"⚠️ Debug log failure: {exc}")
