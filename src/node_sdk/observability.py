"""Structured JSON logging with node execution context."""
import logging
import sys
from typing import Any

from pythonjsonlogger import jsonlogger

from .settings import get_settings


_CONTEXT_FIELDS = ("workflow_id", "node_name", "operation", "item_index")


class NodeContextFilter(logging.Filter):
    """Add node execution context to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add default context fields if not present."""
        for field in _CONTEXT_FIELDS:
            if not hasattr(record, field):
                setattr(record, field, None)
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with standardized field names."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        """Add custom fields to the log record."""
        super().add_fields(log_record, record, message_dict)

        if "timestamp" not in log_record:
            log_record["timestamp"] = self.formatTime(record, self.datefmt)

        log_record["level"] = record.levelname
        log_record["logger"] = record.name

        # item_index 0 is meaningful, so test against None
        for field in _CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_record[field] = value


def setup_logging() -> None:
    """Configure logging for node execution (JSON by default)."""
    settings = get_settings()

    handler = logging.StreamHandler(sys.stdout)

    if settings.log_format == "json":
        formatter: logging.Formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s [%(node_name)s#%(item_index)s] %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    handler.setFormatter(formatter)
    handler.addFilter(NodeContextFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.log_level)

    # Reduce noise from third-party libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def with_node_context(
    workflow_id: str | None = None,
    node_name: str | None = None,
    operation: str | None = None,
    item_index: int | None = None,
    **kwargs: Any,
) -> dict[str, Any]:
    """
    Create an extra dict with node context for logging.

    Args:
        workflow_id: Workflow ID
        node_name: Node instance name
        operation: Operation being executed
        item_index: Index of the input item
        **kwargs: Additional context fields

    Returns:
        Dict to pass as extra parameter to logger methods
    """
    extra = kwargs.copy()
    if workflow_id:
        extra["workflow_id"] = workflow_id
    if node_name:
        extra["node_name"] = node_name
    if operation:
        extra["operation"] = operation
    if item_index is not None:
        extra["item_index"] = item_index
    return extra
