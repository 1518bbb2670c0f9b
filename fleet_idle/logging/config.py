"""
Structured logging for the idle detection pipeline.

All records go through structlog and the standard library root logger to
stdout. The `logging` section of server.yaml selects the level and whether
records are rendered as JSON lines or as console output.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger

from ..errors import ConfigurationError


def configure_logging(level: str = "INFO", format_json: bool = False) -> None:
    """
    Configure structlog for the pipeline.

    Raises:
        ConfigurationError: If level is not a standard logging level name
    """
    log_level = logging.getLevelName(str(level).upper())
    if not isinstance(log_level, int):
        raise ConfigurationError(f"Unknown log level: {level!r}", field="logging.level")

    logging.basicConfig(stream=sys.stdout, format="%(message)s")
    logging.getLogger().setLevel(log_level)

    if format_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    return structlog.get_logger(name)


def get_state_logger(name: str) -> FilteringBoundLogger:
    """Logger for idle state transitions, tagged for the audit trail."""
    return structlog.get_logger(name, subsystem="idle_state", audit_trail=True)


def log_state_transition(
    logger: FilteringBoundLogger,
    device_id: int,
    from_state: str,
    to_state: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log an idle state transition.

    Args:
        logger: Structlog logger instance
        device_id: ID of the device transitioning
        from_state: Previous classification ("idle" or "not_idle")
        to_state: New classification
        trigger: "idle_onset" or "idle_resolved"
        context: Additional context data
    """
    bound_logger = logger.bind(
        device_id=device_id,
        from_state=from_state,
        to_state=to_state,
        trigger=trigger
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("State transition")
