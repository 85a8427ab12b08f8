"""
JSONL logging bootstrap.
Installs a single JSONL sink early in CLI startup so every run leaves a
structured trace of what was scanned, selected and written.
"""

import json
import logging
import os
from datetime import UTC
from datetime import datetime
from pathlib import Path

from .paths import get_cli_home

LOG_PATH_ENV_VAR = "CLAWIGNORE_LOG_PATH"
LOG_LEVEL_ENV_VAR = "CLAWIGNORE_LOG_LEVEL"

# LogRecord attributes that are not user-supplied extras
_RESERVED_ATTRS = frozenset(
    {
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "name",
        "taskName",
        "message",
    }
)


def default_log_path() -> Path:
    override = os.environ.get(LOG_PATH_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return get_cli_home() / "clawignore.log.jsonl"


def default_log_level() -> str:
    return os.environ.get(LOG_LEVEL_ENV_VAR, "INFO").upper()


class JsonlHandler(logging.Handler):
    def __init__(self, path: str | Path):
        super().__init__()
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def build_payload(self, record: logging.LogRecord) -> dict:
        base = {
            "ts": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "lvl": record.levelname,
            "schema": {"name": "clawignore.log", "ver": "1.0.0"},
            "logger": record.name,
            "event": getattr(record, "event", None),
            "message": record.getMessage(),
        }
        # Merge extras if the message is a dict
        if isinstance(record.msg, dict):
            base.update(record.msg)
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            base.setdefault(key, value)
        if record.exc_info:
            base["exc"] = logging.Formatter().formatException(record.exc_info)
        return base

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = json.dumps(self.build_payload(record), ensure_ascii=False, default=str)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except Exception:
            # Never let logging break the wizard; report through logging's own hook
            self.handleError(record)


def init_json_logging(path: str | Path | None = None, level: str | None = None) -> JsonlHandler | None:
    """Attach the JSONL sink to the root logger.

    Returns:
        The installed handler, or None when the log directory cannot be created
    """
    path = Path(path) if path else default_log_path()
    level = (level or default_log_level()).upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))
    # Remove existing handlers of the same kind to avoid duplicates
    for h in list(root.handlers):
        if isinstance(h, JsonlHandler):
            root.removeHandler(h)
    try:
        handler = JsonlHandler(path)
    except OSError:
        return None
    root.addHandler(handler)
    return handler
