"""
Per-delivery log trail returned to the webhook sender for diagnosis.
"""

import logging
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

_LEVELS = {
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class LogTrail:
    """Collects log entries for one delivery and forwards them to logging."""

    def __init__(self, name: str = __name__):
        self.entries: list[dict] = []
        self._logger = logging.getLogger(name)

    def log(self, level: str, message: str, data=None) -> None:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "message": message,
        }
        if data is not None:
            entry["data"] = data
        self.entries.append(entry)
        if data is not None:
            self._logger.log(_LEVELS.get(level, logging.INFO), f"{message} {data}")
        else:
            self._logger.log(_LEVELS.get(level, logging.INFO), message)

    def info(self, message: str, data=None) -> None:
        self.log("info", message, data)

    def warn(self, message: str, data=None) -> None:
        self.log("warn", message, data)

    def error(self, message: str, data=None) -> None:
        self.log("error", message, data)

    def tail(self, count: int = 10) -> list[dict]:
        if count <= 0:
            return []
        return self.entries[-count:]
