from __future__ import annotations

import logging
import sys
from typing import Any, Dict

import structlog


def configure_logging(service_name: str, level: str = "INFO") -> None:
    # stdout carries the MCP stdio transport, so log records go to stderr.
    logging.basicConfig(
        level=getattr(logging, (level or "INFO").upper(), logging.INFO),
        stream=sys.stderr,
        format="%(message)s",
    )
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
    )
    logger = structlog.get_logger(service=service_name)
    logger.info("logging_configured", level=(level or "INFO").upper())


def log_event(logger: structlog.BoundLogger, event_type: str, payload: Dict[str, Any]) -> None:
    logger.info(event_type, **payload)


def get_logger(service_name: str) -> structlog.BoundLogger:
    return structlog.get_logger(service=service_name)
