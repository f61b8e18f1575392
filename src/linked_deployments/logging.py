"""
Logging configuration for linked-deployments library.

The library only emits structlog events (plan_built, unit_deploying,
unit_confirmed, unit_failed, run_completed, ...) and never configures
logging on import. A deployment script or CLI calls configure_logging()
once, before the first run_plan() or DeploymentOrchestrator.run(), to
route those events through the standard logging module.
"""

import logging

import structlog


def configure_logging(level: int | str = logging.INFO, json_logs: bool = True) -> None:
    """
    Configure the structlog/standard logging bridge.

    Args:
        level: Standard logging level or level name
        json_logs: Render one JSON object per event; False renders
                   human-readable console lines for interactive runs
    """
    renderer = (
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=level, format="%(message)s")
