"""Structured logging configuration for the cost engine service."""
import logging
import json
import sys
from datetime import datetime, timezone

# Request attributes set by RequestTimingMiddleware
_REQUEST_FIELDS = ("request_id", "duration_ms", "http_method", "http_path", "http_status")

# Cost-domain attributes passed by the engines through ``extra=``
COST_CONTEXT_FIELDS = ("line_id", "product_id", "month")


def _record_fields(record: logging.LogRecord, fields) -> dict:
    """Attributes of ``record`` named in ``fields``; unset and None values are left out."""
    values = {}
    for field in fields:
        value = getattr(record, field, None)
        if value is not None:
            values[field] = value
    return values


class JSONFormatter(logging.Formatter):
    """JSON structured log formatter for production."""
    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        log_entry.update(_record_fields(record, _REQUEST_FIELDS))
        log_entry.update(_record_fields(record, COST_CONTEXT_FIELDS))
        return json.dumps(log_entry)


class CostContextFormatter(logging.Formatter):
    """Plain-text formatter for local runs; appends the cost context, e.g. ``[line_id=L1 month=2024-06]``."""
    def __init__(self):
        super().__init__("%(asctime)s [%(name)s] %(levelname)s: %(message)s")

    def format(self, record):
        text = super().format(record)
        context = _record_fields(record, COST_CONTEXT_FIELDS)
        if not context:
            return text
        return text + " [" + " ".join(f"{k}={v}" for k, v in context.items()) + "]"


def setup_logging(level: str = "INFO", json_output: bool = True):
    """Configure application logging."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_output else CostContextFormatter())
    root.handlers = [handler]

    # Suppress noisy loggers
    for name in ["uvicorn.access", "httpcore", "httpx"]:
        logging.getLogger(name).setLevel(logging.WARNING)
