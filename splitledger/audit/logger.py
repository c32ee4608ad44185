"""
Structured logging setup

DESIGN DECISION: Everything the ledger does is logged as a structured event
(event name + key/value context) rather than free text. This provides:
1. Traceability of every mutation
2. Debugging capability when balances look wrong
3. Machine-readable output (one JSON object per line)

Modules get a logger with structlog.get_logger(__name__). Logging never
decides control flow: a failing side channel (storage, subscribers) is
logged and the ledger carries on.
"""

import logging
from typing import Union

import structlog


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: Union[str, int] = "INFO") -> None:
    """
    Set the level of the stdlib logger that structlog writes through.

    structlog's filter_by_level defers to the stdlib level, so this is the
    single switch for how verbose the ledger is.
    """
    if isinstance(level, str):
        numeric = logging.getLevelName(level.upper())
        if not isinstance(numeric, int):
            raise ValueError(f"Unknown log level: {level}")
        level = numeric

    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger().setLevel(level)
