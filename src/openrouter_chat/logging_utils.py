"""Logging bootstrap with structlog JSON output and credential redaction."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import structlog

APP_LOGGER_PREFIX = "openrouter_chat"
DEFAULT_LOG_FILE = "~/.local/state/openrouter-chat/app.log"

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "taskName"}

# Keys whose values must never reach a log sink.
_SECRET_KEYS = frozenset({"authorization", "api_key", "credential"})
_REDACTED = "***"


def _redact(key: str, value: Any) -> Any:
    if key.lower() in _SECRET_KEYS:
        return _REDACTED
    if isinstance(value, dict):
        return {k: _redact(str(k), v) for k, v in value.items()}
    return value


def add_record_extras(
    _logger: Any, _method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Copy ``extra=`` fields of a stdlib record into the event dict."""
    record = event_dict.get("_record")
    if record is None:
        return event_dict
    for key, value in record.__dict__.items():
        if key in _RESERVED_ATTRS or key.startswith("_"):
            continue
        event_dict[key] = value
    return event_dict


def redact_secrets(
    _logger: Any, _method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    for key, value in list(event_dict.items()):
        if key.startswith("_"):
            continue
        event_dict[key] = _redact(key, value)
    return event_dict


def build_json_formatter() -> structlog.stdlib.ProcessorFormatter:
    """Formatter rendering stdlib and structlog records as one JSON object per line."""
    return structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(ensure_ascii=False, separators=(",", ":")),
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            add_record_extras,
            redact_secrets,
            structlog.processors.format_exc_info,
        ],
    )


def _is_app_record(record: logging.LogRecord) -> bool:
    return record.name.startswith(APP_LOGGER_PREFIX)


def _restrict_permissions(path: Path) -> None:
    if os.name != "posix":
        return
    try:
        path.chmod(0o600)
    except OSError:
        logging.getLogger(__name__).warning("Unable to restrict permissions on %s", path)


def configure_logging(logging_config: dict[str, Any]) -> None:
    """Install root handlers from the ``[logging]`` config section.

    The console only shows warnings from this package so Textual's screen is
    not flooded; the optional log file receives everything at ``level``.
    """
    level = getattr(logging, str(logging_config.get("level", "INFO")).upper(), logging.INFO)
    structured = bool(logging_config.get("structured", True))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(level)

    formatter: logging.Formatter
    if structured:
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.TimeStamper(fmt="iso", utc=True),
                redact_secrets,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        formatter = build_json_formatter()
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")

    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    console = logging.StreamHandler()
    console.setLevel(max(level, logging.WARNING))
    console.setFormatter(formatter)
    console.addFilter(_is_app_record)
    root.addHandler(console)

    if bool(logging_config.get("log_to_file", False)):
        target = Path(str(logging_config.get("log_file_path", DEFAULT_LOG_FILE))).expanduser()
        target.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(target, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        _restrict_permissions(target)
