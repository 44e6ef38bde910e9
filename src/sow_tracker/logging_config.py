from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Mapping

from google.cloud import logging as cloud_logging

trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)

# Contract/period being worked on by the current request.
log_labels_var: ContextVar[Mapping[str, str] | None] = ContextVar("log_labels", default=None)

LABELS_KEY = "logging.googleapis.com/labels"
TRACE_KEY = "logging.googleapis.com/trace"

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "labels"}


class BillingContextFilter(logging.Filter):
    """Copy the bound contract and period labels onto each record.

    Cloud Logging handlers read ``record.labels`` directly, and
    ``StructuredFormatter`` emits them under the labels key, so the same
    filter serves both outputs.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        bound = log_labels_var.get()
        if bound:
            record.labels = {**bound, **(getattr(record, "labels", None) or {})}
        return True


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging compatible with Cloud Logging."""

    def __init__(self, *, service: str = "sow-tracker", project_id: str | None = None) -> None:
        super().__init__()
        self._service = service
        self._project_id = project_id

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "severity": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "service": self._service,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        trace_id = trace_id_var.get()
        if trace_id:
            log_obj[TRACE_KEY] = self._trace_resource(trace_id)

        labels = getattr(record, "labels", None)
        if labels:
            log_obj[LABELS_KEY] = {key: str(value) for key, value in labels.items()}

        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_obj[key] = value

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str)

    def _trace_resource(self, trace_id: str) -> str:
        if self._project_id and not trace_id.startswith("projects/"):
            return f"projects/{self._project_id}/traces/{trace_id}"
        return trace_id


def setup_logging(
    *,
    environment: str = "dev",
    project_id: str | None = None,
    use_cloud_logging: bool = True,
) -> None:
    """Configure logging for the application.

    Args:
        environment: Environment name (dev, staging, prod)
        project_id: GCP project ID for Cloud Logging and trace resources
        use_cloud_logging: Whether to use Cloud Logging client
    """
    log_level = logging.DEBUG if environment == "dev" else logging.INFO
    context_filter = BillingContextFilter()

    if use_cloud_logging and project_id and environment != "dev":
        client = cloud_logging.Client(project=project_id)
        client.setup_logging(log_level=log_level)
        for handler in logging.getLogger().handlers:
            handler.addFilter(context_filter)
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter(project_id=project_id))
        handler.addFilter(context_filter)
        logging.basicConfig(level=log_level, handlers=[handler])

    logging.getLogger("google").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def set_trace_id(trace_id: str | None) -> None:
    trace_id_var.set(trace_id)


def get_trace_id() -> str | None:
    return trace_id_var.get()


def bind_log_labels(**labels: str) -> None:
    """Add labels (``contract_id``, ``period_id``) to every later record in this context."""
    current = log_labels_var.get() or {}
    log_labels_var.set({**current, **labels})


def clear_log_context() -> None:
    trace_id_var.set(None)
    log_labels_var.set(None)


__all__ = [
    "BillingContextFilter",
    "StructuredFormatter",
    "bind_log_labels",
    "clear_log_context",
    "get_trace_id",
    "set_trace_id",
    "setup_logging",
]
