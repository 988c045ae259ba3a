import logging
import os
from datetime import datetime
from typing import Union


def default_log_path(prefix: str = "sync", logs_dir: str = "logs") -> str:
    """Timestamped log file path inside logs_dir, created if missing"""
    os.makedirs(logs_dir, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filename = f"{prefix}_{timestamp}.log"
    return os.path.join(logs_dir, filename)


def setup_logger(name: str = "shazam_sync", log_file: Union[str, bool, None] = None,
                 level: int = logging.INFO, prefix: str = "sync") -> logging.Logger:
    """Configure and return a logger that writes to console and a file.

    Module loggers (``logging.getLogger(__name__)``) inside the package
    propagate to this one. Pass ``log_file=False`` to skip the file handler.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger  # Already configured

    logger.setLevel(level)

    # Console handler
    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(ch)

    if log_file is False:
        return logger

    # File handler
    log_path = log_file or default_log_path(prefix=prefix)
    fh = logging.FileHandler(log_path, encoding="utf-8")
    fh.setLevel(level)
    fh.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
    logger.addHandler(fh)

    logger.info(f"Logging to file: {log_path}")
    return logger
