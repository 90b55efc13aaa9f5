"""
Logging setup for the pipeline and for raw provider responses.

Two loggers are configured:
- "feed_rewriter": console output through rich plus a rotating file
- "feed_rewriter.llm": JSONL record of every provider response, optionally
  redacted

Structured fields are passed with log_event(..., **fields) and land as
top-level keys in JSONL records.
"""

from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from datetime import datetime, timezone
from pathlib import Path
import re
from typing import Any

from rich.logging import RichHandler

from ..config import LoggingConfig


PIPELINE_LOGGER = "feed_rewriter"
LLM_LOGGER = "feed_rewriter.llm"

_URL_RE = re.compile(r"https?://\S+")

# LogRecord attributes that are not user-supplied fields
_RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def setup_logging(cfg: LoggingConfig, log_dir: Path | None) -> logging.Logger:
    logger = _reset_logger(PIPELINE_LOGGER, cfg.level)

    if cfg.console:
        console_handler = RichHandler(rich_tracebacks=True, show_time=True, show_level=True)
        console_handler.setLevel(logger.level)
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(console_handler)

    if cfg.file and log_dir is not None:
        logger.addHandler(_file_handler(cfg, log_dir / cfg.filename, _build_file_formatter(cfg.format)))

    return logger


def setup_llm_logger(cfg: LoggingConfig, log_dir: Path | None) -> logging.Logger | None:
    """Return the provider-response logger, or None when it is disabled."""
    if not cfg.llm_log_enabled or log_dir is None:
        return None

    logger = _reset_logger(LLM_LOGGER, cfg.level)
    logger.addHandler(_file_handler(cfg, log_dir / cfg.llm_log_file, JsonlFormatter()))
    return logger


def log_event(
    logger: logging.Logger | None,
    message: str,
    level: int = logging.INFO,
    exc_info: Any = None,
    **fields: Any,
) -> None:
    if logger is None:
        return
    logger.log(level, message, exc_info=exc_info, extra=fields)


def redact_text(text: str, mode: str) -> str:
    if mode == "redact_content":
        return ""
    if mode == "redact_urls":
        return _URL_RE.sub("[REDACTED_URL]", text)
    return text


def redact_value(value: str | None, mode: str) -> str | None:
    if value is None:
        return None
    if mode == "redact_urls":
        return "[REDACTED]"
    if mode == "redact_content":
        return None
    return value


def truncate_text(text: str, max_chars: int = 20000) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "...(truncated)"


class JsonlFormatter(logging.Formatter):
    """One JSON object per line; extra fields become top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_extract_extras(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _extract_extras(record: logging.LogRecord) -> dict[str, Any]:
    return {key: value for key, value in record.__dict__.items() if key not in _RESERVED}


def _reset_logger(name: str, level: str) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(_level_from_string(level))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False
    return logger


def _file_handler(cfg: LoggingConfig, path: Path, formatter: logging.Formatter) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        path,
        maxBytes=max(cfg.max_bytes, 0),
        backupCount=cfg.backup_count,
        encoding="utf-8",
    )
    handler.setLevel(_level_from_string(cfg.level))
    handler.setFormatter(formatter)
    return handler


def _build_file_formatter(fmt: str) -> logging.Formatter:
    if fmt == "jsonl":
        return JsonlFormatter()
    return logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")


def _level_from_string(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)
