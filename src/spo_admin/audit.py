from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO


class JsonAuditLogger:
    """Structured logger for operational events.

    Writes one JSON object per event to stderr so that stdout only carries
    command output. Quiet (WARNING) unless a command runs with --verbose.
    """

    def __init__(
        self,
        name: str = "spo_admin",
        level: int = logging.WARNING,
        stream: Optional[TextIO] = None,
    ):
        self.logger = logging.getLogger(name)
        if not self.logger.handlers:
            handler = logging.StreamHandler(stream or sys.stderr)
            handler.setFormatter(_JsonFormatter())
            self.logger.addHandler(handler)
        self.logger.setLevel(level)
        self.logger.propagate = False

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)

    def _log(self, level: int, message: str, **kwargs: Any) -> None:
        self.logger.log(level, message, extra={"extra": kwargs})

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, **kwargs)


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
        }

        extra: Optional[Dict[str, Any]] = getattr(record, "extra", None)  # type: ignore[attr-defined]
        if extra:
            payload.update(extra)

        return json.dumps(payload, default=str)
