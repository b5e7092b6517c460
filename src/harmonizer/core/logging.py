"""Structured logging with redaction helpers."""

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any

# Sensitive key patterns to redact
SENSITIVE_PATTERNS = [
    r"api[_-]?key",
    r"token",
    r"secret",
    r"password",
    r"credential",
    r"auth",
]

REDACTED = "***REDACTED***"


class StructuredFormatter(logging.Formatter):
    """JSON structured log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add extra fields
        if hasattr(record, "run_id"):
            log_obj["run_id"] = record.run_id
        if hasattr(record, "step"):
            log_obj["step"] = record.step

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj)


def redact_sensitive(data: Any) -> Any:
    """Redact sensitive information from data.

    Args:
        data: Data to redact (dict, list, or string)

    Returns:
        Redacted data
    """
    if isinstance(data, dict):
        return {k: redact_value(k, v) for k, v in data.items()}
    elif isinstance(data, list):
        return [redact_sensitive(item) for item in data]
    elif isinstance(data, str):
        for pattern in SENSITIVE_PATTERNS:
            data = re.sub(
                rf"({pattern})[\s=:]+\S+",
                rf"\1={REDACTED}",
                data,
                flags=re.IGNORECASE,
            )
        return data
    return data


def redact_value(key: str, value: Any) -> Any:
    """Redact a non-empty string value whose key matches a sensitive pattern."""
    key_lower = key.lower()
    if isinstance(value, str) and value:
        for pattern in SENSITIVE_PATTERNS:
            if re.search(pattern, key_lower):
                return REDACTED

    if isinstance(value, (dict, list)):
        return redact_sensitive(value)

    return value


def setup_logging(level: str = "INFO", structured: bool = True) -> None:
    """Set up application logging.

    Args:
        level: Log level name
        structured: Use structured JSON logging
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers = []

    handler = logging.StreamHandler()
    if structured:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
    root_logger.addHandler(handler)

    # Suppress noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
