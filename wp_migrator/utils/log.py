from __future__ import annotations

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEFAULT_LOG_FILE = os.path.join("reports", "migration", "migration.log")


def setup_logging(level: str = "INFO", log_file: Optional[str] = DEFAULT_LOG_FILE) -> logging.Logger:
    """Send ``wp_migrator`` log records to the console and, optionally, a file.

    Calling it again replaces the handlers installed by the previous call.
    """
    root = logging.getLogger("wp_migrator")
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    for handler in list(root.handlers):
        if getattr(handler, "_wp_migrator", False):
            root.removeHandler(handler)
            handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler._wp_migrator = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    return root
