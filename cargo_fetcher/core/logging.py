"""Logging for the cargo-fetch CLI: structlog rendered through stdlib handlers."""

from __future__ import annotations

import logging
import logging.config
import os

import structlog


def setup_logging(level: str | None = None) -> None:
    """Route structlog and stdlib records to stderr.

    *level* (``--verbose`` passes ``DEBUG``) overrides
    ``CARGO_FETCHER_LOG_LEVEL``; ``CARGO_FETCHER_LOG_FORMAT=json`` switches
    from the console renderer to one JSON object per line.
    """
    log_level = (level or os.environ.get("CARGO_FETCHER_LOG_LEVEL", "INFO")).upper()
    as_json = os.environ.get("CARGO_FETCHER_LOG_FORMAT", "console").lower() == "json"

    pre_chain: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer = (
        structlog.processors.JSONRenderer() if as_json else structlog.dev.ConsoleRenderer()
    )
    # stdout is reserved for --json results.
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "cargo_fetcher": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": pre_chain,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        renderer,
                    ],
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "cargo_fetcher",
                },
            },
            "root": {"handlers": ["stderr"], "level": "WARNING"},
            "loggers": {"cargo_fetcher": {"level": log_level}},
        }
    )
