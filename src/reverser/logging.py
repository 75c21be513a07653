"""Logging configuration for the reverser service."""

from __future__ import annotations

import logging
from typing import TextIO

import structlog

SERVICE_NAME = "video-reverser"
HANDLER_NAME = "reverser"


def _service_adder(service: str):
    def add_service(_logger, _method_name, event_dict):
        event_dict.setdefault("service", service)
        return event_dict

    return add_service


def _shared_processors(service: str) -> list:
    return [
        structlog.contextvars.merge_contextvars,
        _service_adder(service),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def configure_logging(level: str = "INFO", *, service: str = SERVICE_NAME, stream: TextIO | None = None) -> None:
    """Route stdlib and structlog records through one JSON renderer.

    Records logged with ``extra={...}`` keep their context fields, and every
    record carries the ``service`` name. Values bound with
    ``structlog.contextvars.bind_contextvars`` are merged into both kinds.
    Calling it again replaces the handler installed by the previous call.
    """
    shared = _shared_processors(service)
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[*shared, structlog.stdlib.ExtraAdder()],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
    )
    handler = logging.StreamHandler(stream)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == HANDLER_NAME:
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
