"""
Logging setup for the relay Lambda and the CLI.

Log lines carry the group_id ("{facet}/{id}") of the item being written.

Environment Variables:
    FACETSTORE_LOG_LEVEL: DEBUG, INFO, WARNING or ERROR - default: INFO
    FACETSTORE_LOG_FORMAT: json or text - default: json
"""

import logging
import os
import sys
from typing import Optional

from pythonjsonlogger.json import JsonFormatter

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def setup_logging() -> None:
    """Replace the root handlers with one stdout handler in the configured format."""
    level_name = os.getenv("FACETSTORE_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name) if level_name in _LEVELS else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(GroupIdFilter())
    if os.getenv("FACETSTORE_LOG_FORMAT", "json").lower() == "json":
        handler.setFormatter(JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s %(group_id)s",
            rename_fields={"asctime": "timestamp", "name": "logger", "levelname": "level"},
        ))
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s [group_id=%(group_id)s]"
        ))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    # boto logs every request at DEBUG
    for name in ("botocore", "boto3", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str, group_id: Optional[str] = None) -> logging.LoggerAdapter:
    """Logger whose records carry ``group_id``, e.g. get_logger(__name__, "ORDER/42")."""
    return GroupIdAdapter(logging.getLogger(name), {"group_id": group_id or "N/A"})


class GroupIdAdapter(logging.LoggerAdapter):
    """Adds group_id while keeping any extra fields passed to the call."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


class GroupIdFilter(logging.Filter):
    """Gives records logged without get_logger() a group_id of N/A."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "group_id"):
            record.group_id = "N/A"  # type: ignore
        return True
