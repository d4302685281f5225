"""Logging setup for rubyscan.

structlog events are rendered by a stdlib ``ProcessorFormatter`` on stderr;
stdout carries nothing but the scan result.
"""

from __future__ import annotations

import logging
import logging.config
import os

import structlog

LEVEL_ENV = "RUBYSCAN_LOG_LEVEL"
FORMAT_ENV = "RUBYSCAN_LOG_FORMAT"
DEFAULT_LEVEL = "INFO"

# Libraries that only matter when they fail.
_QUIET_LOGGERS = ("yaml",)


def resolve_level(verbose: bool = False) -> str:
    """``-v`` wins; otherwise RUBYSCAN_LOG_LEVEL, falling back to INFO when unknown."""
    if verbose:
        return "DEBUG"
    level = os.environ.get(LEVEL_ENV, DEFAULT_LEVEL).upper()
    if not isinstance(logging.getLevelName(level), int):
        return DEFAULT_LEVEL
    return level


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=False)


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]


def setup_logging(verbose: bool = False) -> None:
    """Configure structlog and stdlib logging for one CLI run.

    Environment:
        RUBYSCAN_LOG_LEVEL   DEBUG | INFO | WARNING | ERROR (default: INFO)
        RUBYSCAN_LOG_FORMAT  console | json (default: console)
    """
    level = resolve_level(verbose)
    shared = _shared_processors()

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "rubyscan": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": shared,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        _renderer(os.environ.get(FORMAT_ENV, "console").lower()),
                    ],
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "rubyscan",
                },
            },
            "root": {"handlers": ["stderr"], "level": level},
            "loggers": {
                "rubyscan": {"level": level},
                **{name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
            },
        }
    )
