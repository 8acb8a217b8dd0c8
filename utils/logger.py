# utils/logger.py
import logging
import sys
from config.paths import LOG_PATH

# Ensure directory exists
LOG_PATH.parent.mkdir(parents=True, exist_ok=True)

logger = logging.getLogger("optimization")
logger.setLevel(logging.INFO)


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Attach file and stdout handlers to the root logger once."""
    root = logging.getLogger()
    root.setLevel(level)

    # Prevent duplicate handlers if called multiple times
    if any(getattr(h, "_optimization_handler", False) for h in root.handlers):
        return logger

    # File handler
    file_handler = logging.FileHandler(LOG_PATH, encoding="utf-8")
    file_formatter = logging.Formatter(
        "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    file_handler.setFormatter(file_formatter)

    # Stream handler (stdout -> docker logs)
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_formatter = logging.Formatter("[%(levelname)s] %(name)s: %(message)s")
    stream_handler.setFormatter(stream_formatter)

    for handler in (file_handler, stream_handler):
        handler._optimization_handler = True
        root.addHandler(handler)

    return logger
