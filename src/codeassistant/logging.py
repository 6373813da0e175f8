import logging
import sys

import structlog


def configure_logging(level: str = "WARNING"):
    """Route structlog output to stderr at ``level`` and quiet litellm's own loggers."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper())),
        # Looked up per logger so a redirected stderr is picked up
        logger_factory=lambda *args: structlog.WriteLogger(file=sys.stderr),
    )
    for name in ("LiteLLM", "httpx"):
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None):
    return structlog.get_logger(name or "codeassistant")
