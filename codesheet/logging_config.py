"""Logging setup for the codesheet service."""

import json
import logging
import sys
from datetime import datetime, timezone


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record):
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        if hasattr(record, "dataset_type"):
            entry["dataset_type"] = record.dataset_type
        return json.dumps(entry)


def setup_logging(level: str = "INFO", json_output: bool = False):
    """Configure the codesheet logger tree; leaves the root logger alone."""
    logger = logging.getLogger("codesheet")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))

    logger.handlers = [handler]

    for name in ["uvicorn.access", "httpx"]:
        logging.getLogger(name).setLevel(logging.WARNING)
