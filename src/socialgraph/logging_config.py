"""structlog configuration for socialgraph.

Level and output mode come from ``LOG_LEVEL`` / ``LOG_JSON`` unless passed
explicitly:
- Console (default): colored key/value output to stderr
- JSON: one structured JSON object per line on stderr

Only the handler installed here is replaced on reconfiguration; handlers
added to the root logger by the host application are left alone.
"""

from __future__ import annotations

import logging
import sys

import structlog

from socialgraph.config import Settings, settings as default_settings

LOGGER_NAME = "socialgraph"
_HANDLER_NAME = "socialgraph-structlog"


def _build_renderer(json_logs: bool) -> structlog.types.Processor:
    if json_logs:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    level: str | None = None,
    json_logs: bool | None = None,
    config: Settings | None = None,
) -> None:
    """Configure structlog processors and route them through stdlib logging.

    Args:
        level: Log level name for the ``socialgraph`` logger tree
            (defaults to ``LOG_LEVEL``).
        json_logs: Use the JSON renderer (defaults to ``LOG_JSON``).
        config: Settings to read the defaults from (defaults to the global settings).
    """
    config = config or default_settings
    level = (level or config.LOG_LEVEL).upper()
    json_logs = config.LOG_JSON if json_logs is None else json_logs

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if json_logs:
        # Tracebacks become a string field instead of multi-line output
        shared_processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _build_renderer(json_logs),
            ],
        )
    )

    root_logger = logging.getLogger()
    for existing in [h for h in root_logger.handlers if h.get_name() == _HANDLER_NAME]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    if root_logger.level < logging.WARNING:
        root_logger.setLevel(logging.WARNING)

    logging.getLogger(LOGGER_NAME).setLevel(level)
    # The driver logs every pool event at DEBUG
    logging.getLogger("neo4j").setLevel(logging.WARNING)
