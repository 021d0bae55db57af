"""
Structured JSON logging for synth-time diagnostics.

Usage:
  from orthanc_cdk.logger import get_logger
  logger = get_logger(__name__)
  logger.info("Stack declared", extra={"stack": "Orthanc-Network"})

Output:
  {"timestamp":"2024-01-01T00:00:00Z","level":"INFO","logger":"orthanc_cdk.composer",
   "message":"Stack declared","stack":"Orthanc-Network"}
"""
from __future__ import annotations

import json
import logging
import os
import time
from typing import Any

# Standard logging.LogRecord fields we don't want in the output
_STDLIB_FIELDS = {
    "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
    "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
    "created", "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "message", "taskName",
}

_configured = False


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()

        log_obj: dict[str, Any] = {
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.message,
        }

        for key, value in record.__dict__.items():
            if key not in _STDLIB_FIELDS:
                log_obj[key] = value

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str)


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger under the ``orthanc_cdk`` hierarchy that emits JSON to stderr.
    Only the package logger is configured, so the CDK CLI's own output is untouched.
    """
    global _configured
    if not _configured:
        package_logger = logging.getLogger("orthanc_cdk")
        handler = logging.StreamHandler()
        handler.setFormatter(_JsonFormatter())
        package_logger.addHandler(handler)
        package_logger.propagate = False
        log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
        package_logger.setLevel(getattr(logging, log_level, logging.INFO))
        _configured = True
    return logging.getLogger(name)
