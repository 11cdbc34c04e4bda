"""
Viva Logging — colorized dev output, JSON in production.

Features:
- Color formatter for dev mode (auto-detects TTY)
- JSON structured formatter for production (VIVA_LOG_FORMAT=json)
- Suppresses noisy third-party loggers (httpx, httpcore, openai, deepgram)
- Configurable via VIVA_LOG_LEVEL, VIVA_LOG_COLOR, VIVA_LOG_FORMAT
- PipelineTimer for STT -> LLM -> TTS latency of a single utterance

Structured log extra fields (pass via logger.info(..., extra={...})):
    session_id, epoch, stage, duration_ms, status
"""

from __future__ import annotations

import json
import logging
import os
import sys
import time
from datetime import datetime, timezone

COLORS = {
    "DEBUG": "\033[36m",  # Cyan
    "INFO": "\033[32m",  # Green
    "WARNING": "\033[33m",  # Yellow
    "ERROR": "\033[31m",  # Red
    "CRITICAL": "\033[1;31m",  # Bold red
    "RESET": "\033[0m",
    "DIM": "\033[2m",
}

_STRUCTURED_FIELDS = (
    "session_id",
    "epoch",
    "stage",
    "duration_ms",
    "status",
)

_NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "openai",
    "openai._base_client",
    "deepgram",
    "websockets",
    "uvicorn.access",
)


class ColorFormatter(logging.Formatter):
    """Colorized log formatter for terminal output."""

    def __init__(self, use_color: bool = True):
        super().__init__(
            fmt="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
            datefmt="%H:%M:%S",
        )
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_color:
            return super().format(record)

        orig_levelname = record.levelname
        orig_name = record.name

        record.levelname = (
            f"{COLORS.get(record.levelname, '')}{record.levelname}{COLORS['RESET']}"
        )
        record.name = f"{COLORS['DIM']}{record.name}{COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = orig_levelname
            record.name = orig_name


class StructuredFormatter(logging.Formatter):
    """JSON log formatter for log aggregation.

    Each line is one JSON object. Extra fields passed via
    logger.info("msg", extra={"session_id": "...", "duration_ms": 42})
    land at the top level.

    Enable with: VIVA_LOG_FORMAT=json
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in _STRUCTURED_FIELDS:
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class PipelineTimer:
    """Tracks stage latency across one recognition → generation → synthesis pass.

    Usage:
        timer = PipelineTimer()
        timer.mark("stt")
        timer.mark("llm")
        timer.mark("tts")
        timer.summary()  # -> "stt: 0.3s | llm: 0.9s | tts: 1.2s | Total: 2.4s"
    """

    def __init__(self) -> None:
        self._marks: list[tuple[str, float]] = []
        self._start = time.monotonic()

    def mark(self, stage: str) -> float:
        """Record completion of a stage; returns its elapsed milliseconds."""
        now = time.monotonic()
        prev = self._marks[-1][1] if self._marks else self._start
        self._marks.append((stage, now))
        return (now - prev) * 1000

    def elapsed(self, stage: str) -> float | None:
        """Seconds spent in a recorded stage, or None if it never ran."""
        for i, (name, ts) in enumerate(self._marks):
            if name == stage:
                prev_ts = self._marks[i - 1][1] if i > 0 else self._start
                return ts - prev_ts
        return None

    def total(self) -> float:
        return time.monotonic() - self._start

    def summary(self) -> str:
        parts = []
        for i, (name, ts) in enumerate(self._marks):
            prev_ts = self._marks[i - 1][1] if i > 0 else self._start
            parts.append(f"{name}: {ts - prev_ts:.1f}s")
        parts.append(f"Total: {self.total():.1f}s")
        return " | ".join(parts)


def _should_use_color() -> bool:
    env_val = os.getenv("VIVA_LOG_COLOR", "auto").lower()
    if env_val == "true":
        return True
    if env_val == "false":
        return False
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def setup_logging() -> None:
    """Configure logging for the whole process. Call once at startup.

    Env vars:
        VIVA_LOG_LEVEL  — DEBUG / INFO / WARNING / ERROR (default: INFO)
        VIVA_LOG_COLOR  — true / false / auto (default: auto)
        VIVA_LOG_FORMAT — text / json (default: text)
    """
    level_name = os.getenv("VIVA_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    log_format = os.getenv("VIVA_LOG_FORMAT", "text").lower()

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    if log_format == "json":
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = ColorFormatter(use_color=_should_use_color())

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    root.addHandler(handler)

    for noisy_logger in _NOISY_LOGGERS:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(level)

    logging.getLogger("viva").debug(
        "Logging configured (level=%s, format=%s)", level_name, log_format
    )
