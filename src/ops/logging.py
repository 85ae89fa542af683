"""
Logging setup.
"""

from __future__ import annotations

import logging
import os
from typing import List, Optional


def setup_logging(log_path: Optional[str], log_level: str, quiet_loggers: Optional[List[str]] = None) -> None:
    """
    Configure root logging once for the process.

    Logs go to stderr and, when log_path is set, to that file as well.
    Loggers named in quiet_loggers are raised to WARNING.
    """
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_path:
        log_dir = os.path.dirname(log_path)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        handlers.insert(0, logging.FileHandler(log_path))

    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(message)s",
        handlers=handlers,
    )

    for name in quiet_loggers or ["uvicorn.access"]:
        logging.getLogger(name).setLevel(logging.WARNING)
