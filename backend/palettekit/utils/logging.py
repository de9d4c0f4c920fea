"""
Palettekit Structured Logging
Loguru sink setup plus helpers that attach request context to log lines.
"""
import sys
from typing import Any, Dict, Optional, Sequence

from loguru import logger

from palettekit.config import config

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {message} | {extra}"


class StructuredLogger:
    """Loguru wrapper that binds context fields to every message."""

    def __init__(self, level: Optional[str] = None, serialize: Optional[bool] = None):
        self.level = (level or config.LOG_LEVEL).upper()
        self.serialize = config.LOG_JSON if serialize is None else serialize
        self._configure_logger()

    def _configure_logger(self):
        # Replace loguru's default stderr handler
        logger.remove()
        logger.add(sys.stdout, format=LOG_FORMAT, level=self.level, serialize=self.serialize)

    def _log(self, level: str, message: str, extra: Optional[Dict[str, Any]]):
        target = logger.bind(**extra) if extra else logger
        target.opt(depth=2).log(level, message)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log("INFO", message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log("WARNING", message, extra)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log("ERROR", message, extra)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._log("DEBUG", message, extra)

    def palette_event(self, request_id: str, source: str, k: int,
                      colors: Sequence[str], fallback_used: bool = False,
                      duration_ms: Optional[float] = None):
        """One summary line per palette request."""
        extra = {
            "request_id": request_id,
            "source": source,
            "k": k,
            "colors": list(colors),
            "fallback_used": fallback_used,
        }
        if duration_ms is not None:
            extra["duration_ms"] = round(duration_ms, 1)

        level = "WARNING" if fallback_used else "INFO"
        self._log(level, f"[{request_id}] palette {source} k={k} -> {len(colors)} colors", extra)


# Global logger instance
_logger: Optional[StructuredLogger] = None


def get_logger() -> StructuredLogger:
    """Get or create global logger instance."""
    global _logger
    if _logger is None:
        _logger = StructuredLogger()
    return _logger
