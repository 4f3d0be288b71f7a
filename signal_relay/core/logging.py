"""Structured logging with traceId."""

import json
import os
import uuid
import traceback
from datetime import datetime
from typing import Dict, Any
from pathlib import Path

_LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40, "CRITICAL": 50}


def _log_dir() -> Path:
    return Path(os.getenv("RELAY_LOG_DIR") or "logs")


def _min_level() -> int:
    return _LEVELS.get((os.getenv("LOG_LEVEL") or "INFO").upper(), 20)


class StructuredLogger:
    """Structured JSON logger with traceId support and file output."""

    def __init__(self, name: str):
        self.name = name
        self.trace_id = str(uuid.uuid4())[:8]

    @property
    def log_file(self) -> Path:
        return _log_dir() / f"{self.name}.log"

    def _log(self, level: str, message: str, data: Dict[str, Any] = None):
        """Log structured message to both stdout and file."""
        if _LEVELS[level] < _min_level():
            return

        log_entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "logger": self.name,
            "traceId": self.trace_id,
            "message": message,
            "data": data or {}
        }

        log_line = json.dumps(log_entry, ensure_ascii=False, default=str)

        print(log_line)

        try:
            log_file = self.log_file
            log_file.parent.mkdir(parents=True, exist_ok=True)
            with open(log_file, 'a', encoding='utf-8') as f:
                f.write(log_line + '\n')
        except OSError as e:
            print(f"ERROR: Failed to write log to file {self.log_file}: {e}")

    def info(self, message: str, data: Dict[str, Any] = None):
        """Log info message."""
        self._log("INFO", message, data)

    def warning(self, message: str, data: Dict[str, Any] = None):
        """Log warning message."""
        self._log("WARNING", message, data)

    def error(self, message: str, data: Dict[str, Any] = None, exc_info: bool = False):
        """Log error message."""
        error_data = dict(data or {})
        if exc_info:
            error_data["exception"] = traceback.format_exc()
        self._log("ERROR", message, error_data)

    def critical(self, message: str, data: Dict[str, Any] = None, exc_info: bool = False):
        """Log critical error message."""
        error_data = dict(data or {})
        if exc_info:
            error_data["exception"] = traceback.format_exc()
        self._log("CRITICAL", message, error_data)

    def debug(self, message: str, data: Dict[str, Any] = None):
        """Log debug message."""
        self._log("DEBUG", message, data)

    def signal_parsed(self, symbol: str, direction: str, channel_name: str, data: Dict[str, Any] = None):
        """Log signal parsing success."""
        signal_data = {
            "symbol": symbol,
            "direction": direction,
            "channel_name": channel_name,
            **(data or {})
        }
        self.info("Signal parsed successfully", signal_data)

    def signal_suppressed(self, message_id: str, reason: str, data: Dict[str, Any] = None):
        """Log a message that produced no signal."""
        self.debug("Signal suppressed", {"message_id": message_id, "reason": reason, **(data or {})})

    def batch_summary(self, stats: Dict[str, Any]):
        """Log per-batch processing counters."""
        self.info("Batch processed", stats)


# Global logger instances
system_logger = StructuredLogger("system")
signal_logger = StructuredLogger("signal")
delivery_logger = StructuredLogger("delivery")
